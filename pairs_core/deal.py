from __future__ import annotations

import random
from typing import Callable, List, Optional

from .board import Board, CardId
from .errors import ConfigurationError

# Returns a uniform integer in [lo, hi], both inclusive.
RandomSource = Callable[[int, int], int]


def seeded_source(seed: Optional[int] = None) -> RandomSource:
    """A reproducible random source; `None` seeds from the OS."""
    rng = random.Random(seed)
    return rng.randint


def generate(rows: int, columns: int, rand_int: RandomSource) -> List[CardId]:
    """Lays out ids 0..n-1 twice each, plus one unpaired filler id when rows*columns is odd,
    then shuffles them with a forward Fisher-Yates pass driven by `rand_int`."""
    if rows < 1 or columns < 1:
        raise ConfigurationError(f'rows and columns must be >= 1 (got {rows}x{columns})')
    total = rows * columns
    pair_count = total // 2
    ids: List[CardId] = []
    for i in range(pair_count):
        ids.append(i)
        ids.append(i)
    if len(ids) < total:
        # The filler card has no partner and can never be matched.
        ids.append(pair_count)
    for i in range(total):
        j = rand_int(i, total - 1)
        ids[i], ids[j] = ids[j], ids[i]
    return ids


def deal_board(rows: int, columns: int, seed: Optional[int] = None,
               rand_int: Optional[RandomSource] = None) -> Board:
    """Creates and deals a face-down board. `rand_int` wins over `seed` when both are given."""
    source = rand_int if rand_int is not None else seeded_source(seed)
    return Board.from_ids(rows, columns, generate(rows, columns, source))
