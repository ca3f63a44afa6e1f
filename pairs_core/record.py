from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .board import Board, CardId
from .errors import RecordError


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SaveRecord:
    """Flat snapshot of a session. Only ids and matched flags are kept per card;
    face-up and locked state is transient and never persisted."""
    rows: int
    columns: int
    score: int
    card_ids: Tuple[CardId, ...]
    matched_flags: Tuple[bool, ...]

    def validate(self) -> None:
        for name in ("rows", "columns", "score"):
            if not _is_int(getattr(self, name)):
                raise RecordError(f'field {name!r} must be an integer')
        if not isinstance(self.card_ids, (tuple, list)) or not isinstance(self.matched_flags, (tuple, list)):
            raise RecordError('cardIds and matchedFlags must be sequences')
        if not all(_is_int(x) for x in self.card_ids):
            raise RecordError('cardIds must contain integers')
        if not all(isinstance(f, bool) for f in self.matched_flags):
            raise RecordError('matchedFlags must contain booleans')
        if self.rows <= 0 or self.columns <= 0:
            raise RecordError(f'non-positive dimensions {self.rows}x{self.columns}')
        if len(self.card_ids) != len(self.matched_flags):
            raise RecordError(
                f'cardIds/matchedFlags length mismatch ({len(self.card_ids)} != {len(self.matched_flags)})'
            )
        if len(self.card_ids) != self.rows * self.columns:
            raise RecordError(f'expected {self.rows * self.columns} cards, got {len(self.card_ids)}')
        if self.score < 0:
            raise RecordError(f'negative score {self.score}')

    @classmethod
    def of(cls, board: Board, score: int) -> 'SaveRecord':
        return cls(
            rows=board.rows,
            columns=board.columns,
            score=score,
            card_ids=tuple(board.ids()),
            matched_flags=tuple(board.matched_flags()),
        )


def record_to_json(record: SaveRecord) -> Dict[str, Any]:
    return {
        "rows": int(record.rows),
        "columns": int(record.columns),
        "score": int(record.score),
        "cardIds": [int(x) for x in record.card_ids],
        "matchedFlags": [bool(x) for x in record.matched_flags],
    }


def _require(obj: Dict[str, Any], key: str) -> Any:
    if key not in obj:
        raise RecordError(f'missing field {key!r}')
    return obj[key]


def _require_list(obj: Dict[str, Any], key: str) -> list:
    if key not in obj or obj[key] is None:
        raise RecordError(f'missing field {key!r}')
    value = obj[key]
    if not isinstance(value, list):
        raise RecordError(f'field {key!r} must be a list')
    return value


def record_from_json(obj: Any) -> SaveRecord:
    """Decodes and validates; raises RecordError on anything that is not a complete, consistent record."""
    if not isinstance(obj, dict):
        raise RecordError('record must be a JSON object')
    ids = _require_list(obj, "cardIds")
    flags = _require_list(obj, "matchedFlags")
    record = SaveRecord(
        rows=_require(obj, "rows"),
        columns=_require(obj, "columns"),
        score=_require(obj, "score"),
        card_ids=tuple(ids),
        matched_flags=tuple(flags),
    )
    record.validate()
    return record


def dumps_record(record: SaveRecord) -> str:
    return json.dumps(record_to_json(record), separators=(",", ":"))


def loads_record(text: str) -> SaveRecord:
    if not text:
        raise RecordError('empty record')
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordError(f'not valid JSON: {e}') from e
    return record_from_json(obj)
