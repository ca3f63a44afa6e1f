from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

CardId = int
Coord = Tuple[int, int]


class CardState(str, Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"


@dataclass
class Card:
    """A single card. `index` is its board position and never changes during a session."""
    index: int
    card_id: CardId
    face_up: bool = False
    matched: bool = False
    locked: bool = False

    @property
    def state(self) -> CardState:
        if self.matched:
            return CardState.MATCHED
        if self.face_up:
            return CardState.REVEALED
        return CardState.HIDDEN

    def view(self) -> 'Card':
        """Detached copy for readers outside the engine."""
        return replace(self)


@dataclass
class Board:
    """The ordered cards of one game session, row-major, length == rows * columns."""
    rows: int
    columns: int
    cards: List[Card] = field(default_factory=list)

    @classmethod
    def from_ids(
        cls,
        rows: int,
        columns: int,
        ids: Sequence[CardId],
        matched: Optional[Sequence[bool]] = None,
    ) -> 'Board':
        """Lays out cards face down; matched cards come up face up."""
        if len(ids) != rows * columns:
            raise ValueError('ids length must equal rows*columns')
        cards: List[Card] = []
        for i, cid in enumerate(ids):
            is_matched = bool(matched[i]) if matched is not None else False
            cards.append(Card(index=i, card_id=int(cid), face_up=is_matched, matched=is_matched))
        return cls(rows=rows, columns=columns, cards=cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]

    def index(self, r: int, c: int) -> int:
        """Calculates the 1D index for a given row and column."""
        return r * self.columns + c

    def coord(self, index: int) -> Coord:
        return divmod(index, self.columns)

    def ids(self) -> List[CardId]:
        return [card.card_id for card in self.cards]

    def matched_flags(self) -> List[bool]:
        return [card.matched for card in self.cards]

    def all_matched(self) -> bool:
        for card in self.cards:
            if not card.matched:
                return False
        return True

    def pretty(self) -> str:
        """Human-readable grid: '#' face down, the id when revealed, '[id]' matched, '!' suffix when locked."""
        lines: List[str] = []
        for r in range(self.rows):
            row: List[str] = []
            for c in range(self.columns):
                card = self.cards[self.index(r, c)]
                if card.matched:
                    cell = f"[{card.card_id}]"
                elif card.face_up:
                    cell = str(card.card_id)
                else:
                    cell = "#"
                if card.locked:
                    cell += "!"
                row.append(cell)
            lines.append(" ".join(row))
        return "\n".join(lines)
