from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple, Union

from .board import Board, Card
from .config import EngineConfig
from .deal import RandomSource, deal_board, seeded_source
from .errors import RecordError
from .events import BoardBuilt, CardRevealed, EventBus, GameOver, PairResolved
from .record import SaveRecord, dumps_record, loads_record, record_from_json
from .scheduler import Handle, ManualScheduler, Scheduler
from .store import MemoryStore, PersistenceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loaded:
    rows: int
    columns: int
    score: int


@dataclass(frozen=True)
class LoadFailed:
    reason: str


LoadOutcome = Union[Loaded, LoadFailed]


class MatchEngine:
    """
    Owns one pairs session: the board, the pair being revealed, the cards locked while a
    mismatch is on display, the score and the game-over flag.

    The engine is single-threaded and does no locking. Callers serialize `reveal`, `build`
    and `restore`, and the scheduler must run the mismatch callback under the same
    serialization. The default `ManualScheduler` fires callbacks only from `advance()`, so a
    game loop that ticks `engine.scheduler.advance(dt)` keeps flip-backs on its own thread.
    A `ThreadingScheduler` must share the lock its callers hold around engine calls. Every
    scheduled callback is tagged with the board epoch it was created for and is ignored once
    a newer board has been installed.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        store: Optional[PersistenceStore] = None,
        scheduler: Optional[Scheduler] = None,
        rand_int: Optional[RandomSource] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.store: PersistenceStore = store if store is not None else MemoryStore()
        self.scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.events = events if events is not None else EventBus()
        self._rand_int: RandomSource = rand_int if rand_int is not None else seeded_source()
        self._board: Optional[Board] = None
        self._current_pair: List[int] = []
        self._locked: Set[int] = set()
        self._pending: Dict[int, Handle] = {}
        self._seq = itertools.count()
        self._epoch = 0
        self.score = 0
        self.game_over = False

    # ---------- read-only views ----------

    @property
    def board(self) -> Optional[Board]:
        return self._board

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def cards(self) -> Tuple[Card, ...]:
        if self._board is None:
            return tuple()
        return tuple(card.view() for card in self._board.cards)

    @property
    def current_pair(self) -> Tuple[int, ...]:
        return tuple(self._current_pair)

    @property
    def locked(self) -> FrozenSet[int]:
        return frozenset(self._locked)

    def subscribe(self, event_type: Any, handler: Any) -> None:
        self.events.subscribe(event_type, handler)

    def unsubscribe(self, event_type: Any, handler: Any) -> None:
        self.events.unsubscribe(event_type, handler)

    # ---------- board lifecycle ----------

    def _new_board(self, rows: Optional[int], columns: Optional[int],
                   rand_int: Optional[RandomSource] = None) -> Board:
        r = self.config.rows if rows is None else rows
        c = self.config.columns if columns is None else columns
        # Dealing rejects bad dimensions before anything is mutated.
        return deal_board(r, c, rand_int=rand_int if rand_int is not None else self._rand_int)

    def _install(self, board: Board, score: int) -> None:
        self._cancel_pending()
        self._epoch += 1
        self._board = board
        self._current_pair = []
        self._locked = set()
        self.score = score
        self.game_over = False

    def build(self, rows: Optional[int] = None, columns: Optional[int] = None) -> None:
        """Deals a fresh face-down board and resets the session. Defaults to the configured size."""
        board = self._new_board(rows, columns)
        self._install(board, score=0)
        logger.info("built %dx%d board (epoch %d)", board.rows, board.columns, self._epoch)
        self.save()
        self.events.emit(BoardBuilt(board.rows, board.columns))

    def retry(self, rows: Optional[int] = None, columns: Optional[int] = None,
              seed: Optional[int] = None) -> None:
        """Discards the saved game and starts over on a fresh board.
        A `seed` replaces the random source only once the new board has been dealt."""
        source = seeded_source(seed) if seed is not None else None
        board = self._new_board(rows, columns, source)
        if source is not None:
            self._rand_int = source
        self.clear_save()
        self._install(board, score=0)
        logger.info("retry: new %dx%d board (epoch %d)", board.rows, board.columns, self._epoch)
        self.save()
        self.events.emit(BoardBuilt(board.rows, board.columns))

    def restore(self, record: Union[SaveRecord, Dict[str, Any], str]) -> LoadOutcome:
        """
        Rebuilds a session from a save record (a SaveRecord, its JSON object, or its JSON text).
        Matched cards come back face up, everything else face down and unlocked.
        A bad record is rejected whole and the current session is left untouched.
        """
        try:
            if isinstance(record, SaveRecord):
                record.validate()
                rec = record
            elif isinstance(record, str):
                rec = loads_record(record)
            else:
                rec = record_from_json(record)
        except RecordError as e:
            logger.warning("rejected save record: %s", e)
            return LoadFailed(str(e))

        board = Board.from_ids(rec.rows, rec.columns, rec.card_ids, rec.matched_flags)
        self._install(board, score=rec.score)
        logger.info("restored %dx%d board with score %d (epoch %d)", rec.rows, rec.columns, rec.score, self._epoch)
        self.save()
        self.events.emit(BoardBuilt(board.rows, board.columns))
        return Loaded(rec.rows, rec.columns, rec.score)

    def restore_or_build(self, record: Union[SaveRecord, Dict[str, Any], str]) -> LoadOutcome:
        """Restores `record`, or deals a fresh board if it is rejected."""
        outcome = self.restore(record)
        if isinstance(outcome, LoadFailed):
            self.build()
        return outcome

    def start_new_or_load(self) -> Optional[LoadOutcome]:
        """Continues the saved game if there is a usable one, otherwise deals a new board.
        Returns None when there was nothing to load."""
        text = self.store.load(self.config.save_key)
        if not text:
            self.build()
            return None
        try:
            rec = loads_record(text)
        except RecordError as e:
            logger.warning("discarding unreadable save: %s", e)
            self.build()
            return LoadFailed(str(e))
        if all(rec.matched_flags):
            logger.info("saved game was already finished; starting a new one")
            self.build()
            return None
        return self.restore_or_build(rec)

    def close(self) -> None:
        """Drops any pending flip-back so it can never fire."""
        self._cancel_pending()

    # ---------- play ----------

    def _require_board(self) -> Board:
        if self._board is None:
            raise RuntimeError('no board: call build() or restore() first')
        return self._board

    def reveal(self, index: int) -> None:
        """
        Turns card `index` face up and, on the second card of a pair, resolves it.

        Matched, face-up and locked cards are ignored, as is everything after game over.
        An index outside the board is a caller bug and raises IndexError.
        """
        board = self._require_board()
        if not 0 <= index < len(board):
            raise IndexError(f'card index {index} out of range for {len(board)} cards')
        if self.game_over:
            return
        card = board[index]
        if card.matched or card.face_up or index in self._locked:
            return

        card.face_up = True
        self._current_pair.append(index)
        logger.debug("revealed %d at %s", index, board.coord(index))
        self.events.emit(CardRevealed(index))

        if len(self._current_pair) < 2:
            self.save()
            return

        first, second = self._current_pair
        self._current_pair = []
        a, b = board[first], board[second]
        if a.card_id == b.card_id:
            self._resolve_match(board, a, b)
        else:
            self._begin_mismatch(a, b)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("board after pair:\n%s", board.pretty())

    def _resolve_match(self, board: Board, a: Card, b: Card) -> None:
        a.matched = b.matched = True
        a.face_up = b.face_up = True
        self.score += self.config.match_score_value
        logger.debug("match %d/%d (id %d), score %d", a.index, b.index, a.card_id, self.score)
        self.events.emit(PairResolved(True, (a.index, b.index)))
        if board.all_matched():
            self.game_over = True
            logger.info("game over with score %d", self.score)
            self.events.emit(GameOver(self.score))
        self.save()

    def _begin_mismatch(self, a: Card, b: Card) -> None:
        for card in (a, b):
            card.locked = True
            self._locked.add(card.index)
        logger.debug("mismatch %d/%d, locked for %.2fs", a.index, b.index, self.config.mismatch_delay_seconds)
        self.save()
        epoch = self._epoch
        pair = (a.index, b.index)
        key = next(self._seq)
        self._pending[key] = self.scheduler.call_later(
            self.config.mismatch_delay_seconds,
            lambda: self._resolve_mismatch(epoch, key, pair),
        )

    def _resolve_mismatch(self, epoch: int, key: int, pair: Tuple[int, int]) -> None:
        self._pending.pop(key, None)
        if epoch != self._epoch or self._board is None:
            logger.debug("ignoring flip-back for superseded epoch %d", epoch)
            return
        for i in pair:
            card = self._board[i]
            if not card.matched:
                card.face_up = False
            card.locked = False
            self._locked.discard(i)
        self.save()
        self.events.emit(PairResolved(False, pair))

    def _cancel_pending(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    # ---------- persistence ----------

    def snapshot(self) -> SaveRecord:
        return SaveRecord.of(self._require_board(), self.score)

    def save(self) -> None:
        """Checkpoints the whole session under the configured key."""
        if self._board is None:
            return
        self.store.save(self.config.save_key, dumps_record(self.snapshot()))

    def clear_save(self) -> None:
        self.store.clear(self.config.save_key)

    def view(self) -> Dict[str, Any]:
        """JSON-ready picture of the session for a presentation layer."""
        board = self._board
        return {
            "rows": board.rows if board else 0,
            "columns": board.columns if board else 0,
            "cards": [
                {
                    "index": card.index,
                    "id": card.card_id if (card.face_up or card.matched) else None,
                    "faceUp": card.face_up,
                    "matched": card.matched,
                    "locked": card.locked,
                }
                for card in (board.cards if board else [])
            ],
            "currentPair": list(self._current_pair),
            "locked": sorted(self._locked),
            "score": self.score,
            "gameOver": self.game_over,
        }

