from __future__ import annotations

# Facade module that re-exports the pairs core.
# The Flask app and tests import from here; single-responsibility modules live under pairs_core/*.

from pairs_core.board import Board, Card, CardId, CardState, Coord
from pairs_core.config import DEFAULT_SAVE_KEY, EngineConfig, config_from_env
from pairs_core.deal import RandomSource, deal_board, generate, seeded_source
from pairs_core.engine import LoadFailed, Loaded, LoadOutcome, MatchEngine
from pairs_core.errors import ConfigurationError, PairsError, RecordError
from pairs_core.events import (
    EVENT_TYPES,
    BoardBuilt,
    CardRevealed,
    EventBus,
    GameOver,
    PairResolved,
    event_to_json,
)
from pairs_core.record import (
    SaveRecord,
    dumps_record,
    loads_record,
    record_from_json,
    record_to_json,
)
from pairs_core.scheduler import ManualScheduler, Scheduler, ThreadingScheduler
from pairs_core.store import MemoryStore, PersistenceStore, SqliteStore

__all__ = [
    "Board", "Card", "CardId", "CardState", "Coord",
    "DEFAULT_SAVE_KEY", "EngineConfig", "config_from_env",
    "RandomSource", "deal_board", "generate", "seeded_source",
    "LoadFailed", "Loaded", "LoadOutcome", "MatchEngine",
    "ConfigurationError", "PairsError", "RecordError",
    "EVENT_TYPES", "BoardBuilt", "CardRevealed", "EventBus", "GameOver", "PairResolved", "event_to_json",
    "SaveRecord", "dumps_record", "loads_record", "record_from_json", "record_to_json",
    "ManualScheduler", "Scheduler", "ThreadingScheduler",
    "MemoryStore", "PersistenceStore", "SqliteStore",
]
