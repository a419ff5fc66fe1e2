"""Plateau de jeu Threes! 4x4.

Cette implémentation expose le contrat consommé par les agents:
- `slide(direction)` glisse le plateau sur place et renvoie la variation de
  score, ou -1 si aucune tuile n'a bougé
- `state_after_slide(direction)` renvoie la grille obtenue sans la modifier
- `value()` calcule le score intrinsèque du jeu (indépendant des poids appris)
- `place(position, tile, hint)` pose une tuile et annonce la suivante

Les cases contiennent des rangs (0 = vide, 1, 2, 3 puis 6, 12, ...) codés sur
4 bits, ce qui borne naturellement les index de features.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np

from threes.engine.rules import (
    BAG_COPIES,
    BASIC_TILES,
    BOARD_SIZE,
    DOWN,
    ILLEGAL,
    INITIAL,
    LEFT,
    MAX_RANK,
    NUM_CELLS,
    RIGHT,
    UP,
    rank_score,
    tile_value,
)

Grid = np.ndarray

_RANK_SCORES = np.array([rank_score(rank) for rank in range(MAX_RANK + 1)], dtype=np.int64)


def intrinsic_score(grid: Grid | Sequence[Sequence[int]]) -> int:
    """Score du jeu pour une grille de rangs (somme des 3^(rang-2))."""

    ranks = np.asarray(grid, dtype=np.intp)
    return int(_RANK_SCORES[ranks].sum())


def _oriented(grid: Grid, direction: int) -> Grid:
    """Vue de la grille orientée pour que `direction` devienne un glissement à gauche."""

    if direction == LEFT:
        return grid
    if direction == RIGHT:
        return grid[:, ::-1]
    if direction == UP:
        return grid.T
    if direction == DOWN:
        return grid[::-1, :].T
    raise ValueError(f"Direction inconnue: {direction}")


def _slide_row_left(row: np.ndarray) -> None:
    # Chaque tuile avance d'au plus une case, la vue est modifiée sur place.
    for col in range(1, BOARD_SIZE):
        tile = int(row[col])
        hold = int(row[col - 1])
        if tile == 0:
            continue
        if hold == 0:
            row[col - 1] = tile
            row[col] = 0
        elif {tile, hold} == {1, 2}:
            row[col - 1] = 3
            row[col] = 0
        elif tile == hold and 3 <= tile < MAX_RANK:
            row[col - 1] = tile + 1
            row[col] = 0


class Board:
    """État mutable d'une partie: grille, sac de tuiles, indice et dernière glissade."""

    def __init__(
        self,
        grid: Grid | Sequence[Sequence[int]] | None = None,
        *,
        bag: Sequence[int] | None = None,
        hint: int = 0,
        last: int = INITIAL,
    ) -> None:
        if grid is None:
            self._grid = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.uint8)
        else:
            self._grid = np.array(grid, dtype=np.uint8).reshape(BOARD_SIZE, BOARD_SIZE)
        if bag is None:
            self._bag: List[int] = [BAG_COPIES] * len(BASIC_TILES)
        else:
            if len(bag) != len(BASIC_TILES):
                raise ValueError("bag doit contenir un compteur par tuile de base")
            self._bag = [int(count) for count in bag]
        self._hint = int(hint)
        self._last = int(last)

    # -- Accès -----------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        """Copie de la grille courante (4x4, rangs)."""

        return self._grid.copy()

    @property
    def hint(self) -> int:
        return self._hint

    @property
    def last(self) -> int:
        return self._last

    def bag(self, tile: int) -> int:
        """Nombre d'exemplaires de `tile` encore disponibles (sac vide = sac plein)."""

        if tile not in BASIC_TILES:
            return 0
        if sum(self._bag) == 0:
            return BAG_COPIES
        return self._bag[tile - 1]

    def __call__(self, position: int) -> int:
        row, col = divmod(position, BOARD_SIZE)
        return int(self._grid[row, col])

    def copy(self) -> "Board":
        return Board(self._grid, bag=self._bag, hint=self._hint, last=self._last)

    def empty_cells(self) -> List[int]:
        return [int(index) for index in np.flatnonzero(self._grid.ravel() == 0)]

    def max_rank(self) -> int:
        return int(self._grid.max())

    def value(self) -> int:
        """Score intrinsèque du plateau (fonction de score du jeu)."""

        return intrinsic_score(self._grid)

    # -- Transitions -------------------------------------------------------------

    def slide(self, direction: int) -> int:
        """Glisse le plateau sur place.

        Returns:
            La variation de score intrinsèque (>= 0), ou -1 si le coup est
            illégal; dans ce cas le plateau n'est pas modifié.
        """

        if direction not in (UP, RIGHT, DOWN, LEFT):
            return ILLEGAL
        previous = self._grid.copy()
        for row in _oriented(self._grid, direction):
            _slide_row_left(row)
        if np.array_equal(previous, self._grid):
            return ILLEGAL
        self._last = direction
        return intrinsic_score(self._grid) - intrinsic_score(previous)

    def state_after_slide(self, direction: int) -> Grid:
        """Grille obtenue après `direction`, avant toute insertion de tuile."""

        simulated = self.copy()
        simulated.slide(direction)
        return simulated.grid

    def place(self, position: int, tile: int, hint: int = 0) -> int:
        """Pose `tile` sur une case vide et annonce `hint` comme prochaine tuile.

        Une tuile posée sans indice préalable est tirée du sac; l'indice annoncé
        est lui aussi retiré du sac. Renvoie 0, ou -1 si la pose est invalide.
        """

        if not 0 <= position < NUM_CELLS:
            return ILLEGAL
        if not 1 <= tile <= MAX_RANK or not 0 <= hint <= MAX_RANK:
            return ILLEGAL
        row, col = divmod(position, BOARD_SIZE)
        if self._grid[row, col] != 0:
            return ILLEGAL
        if self._hint == 0:
            self._take(tile)
        self._take(hint)
        self._grid[row, col] = tile
        self._hint = hint
        return 0

    def _take(self, tile: int) -> None:
        if tile not in BASIC_TILES:
            return
        if sum(self._bag) == 0:
            self._bag = [BAG_COPIES] * len(BASIC_TILES)
        if self._bag[tile - 1] > 0:
            self._bag[tile - 1] -= 1

    # -- Utilitaires -------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            np.array_equal(self._grid, other._grid)
            and self._bag == other._bag
            and self._hint == other._hint
            and self._last == other._last
        )

    def __str__(self) -> str:
        lines = ["+" + "-" * 24 + "+"]
        for row in self._grid:
            lines.append("|" + "".join(f"{tile_value(int(rank)):6d}" for rank in row) + "|")
        lines.append("+" + "-" * 24 + "+")
        return "\n".join(lines)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Board(grid={self._grid.tolist()}, hint={self._hint}, last={self._last})"

    @classmethod
    def from_values(cls, values: Iterable[Iterable[int]], **kwargs) -> "Board":
        """Construit un plateau à partir des valeurs affichées (0, 1, 2, 3, 6, 12...)."""

        lookup = {tile_value(rank): rank for rank in range(MAX_RANK + 1)}
        try:
            grid = [[lookup[int(value)] for value in row] for row in values]
        except KeyError as exc:
            raise ValueError(f"Valeur de tuile invalide: {exc.args[0]}") from None
        return cls(grid, **kwargs)


__all__ = ["Board", "Grid", "intrinsic_score"]
