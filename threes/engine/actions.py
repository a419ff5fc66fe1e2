"""Actions du jeu.

Trois actions suffisent à piloter une partie: le glisseur joue `Slide`, le
placeur joue `Place`, et `NoOp` signale qu'aucun coup n'est possible.
"""

from __future__ import annotations

from dataclasses import dataclass

from threes.engine.board import Board
from threes.engine.rules import ILLEGAL


@dataclass(frozen=True)
class Action:
    """Action de base."""

    def apply(self, board: Board) -> int:
        """Applique l'action sur place; renvoie la récompense ou -1."""

        return ILLEGAL


@dataclass(frozen=True)
class Slide(Action):
    """Glisse toutes les tuiles dans une direction.

    Args:
        direction: opcode 0..3 (haut, droite, bas, gauche)
    """

    direction: int

    def apply(self, board: Board) -> int:
        return board.slide(self.direction)


@dataclass(frozen=True)
class Place(Action):
    """Pose une tuile et annonce la suivante.

    Args:
        position: index de case 0..15 (ligne par ligne)
        tile: rang de la tuile posée
        hint: rang de la prochaine tuile annoncée
    """

    position: int
    tile: int
    hint: int = 0

    def apply(self, board: Board) -> int:
        return board.place(self.position, self.tile, self.hint)


@dataclass(frozen=True)
class NoOp(Action):
    """Aucun coup légal: l'appelant décide s'il s'agit d'une fin de partie."""


__all__ = ["Action", "Slide", "Place", "NoOp"]
