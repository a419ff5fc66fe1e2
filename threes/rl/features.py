"""Extraction des features n-tuple à partir d'une grille de rangs.

Chaque tuple est une ligne de cases adjacentes; ses rangs (4 bits chacun) sont
concaténés en base 16 pour obtenir un index dans la table de poids associée.
Avec les 8 tuples par défaut (4 lignes puis 4 colonnes), chaque plan ne
contient que 16^4 = 65536 entrées.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from threes.engine.rules import BOARD_SIZE, MAX_RANK

Cell = Tuple[int, int]

_RANK_BITS = 4


@dataclass(frozen=True)
class TuplePattern:
    """Forme d'un n-tuple: cases lues dans l'ordre, du poids fort au poids faible."""

    cells: Tuple[Cell, ...]

    def __post_init__(self) -> None:
        if not self.cells:
            raise ValueError("Un tuple doit contenir au moins une case")
        for row, col in self.cells:
            if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
                raise ValueError(f"Case hors plateau: {(row, col)}")

    @property
    def table_size(self) -> int:
        return (MAX_RANK + 1) ** len(self.cells)

    def index(self, grid: np.ndarray) -> int:
        result = 0
        for row, col in self.cells:
            result = (result << _RANK_BITS) | int(grid[row][col])
        return result


def _row(index: int) -> TuplePattern:
    return TuplePattern(tuple((index, col) for col in range(BOARD_SIZE)))


def _column(index: int) -> TuplePattern:
    return TuplePattern(tuple((row, index) for row in range(BOARD_SIZE)))


# Ordre figé: row0..row3 puis col0..col3 (le plan i lit la feature i).
ROW_COLUMN_TUPLES: Tuple[TuplePattern, ...] = tuple(
    [_row(index) for index in range(BOARD_SIZE)]
    + [_column(index) for index in range(BOARD_SIZE)]
)


def extract_features(
    grid: np.ndarray | Sequence[Sequence[int]],
    patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
) -> Tuple[int, ...]:
    """Renvoie un index de feature par tuple, dans l'ordre des `patterns`.

    Avec les tuples par défaut, l'index d'une ligne (a, b, c, d) vaut
    ``4096*a + 256*b + 16*c + d``; les colonnes sont lues de haut en bas.
    """

    cells = np.asarray(grid)
    return tuple(pattern.index(cells) for pattern in patterns)


def table_sizes(patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES) -> Tuple[int, ...]:
    """Taille de plan attendue pour chaque tuple."""

    return tuple(pattern.table_size for pattern in patterns)


__all__ = ["ROW_COLUMN_TUPLES", "TuplePattern", "extract_features", "table_sizes"]
