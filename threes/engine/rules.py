"""Règles et constantes de Threes!.

Ce module expose le contrat minimal attendu par le moteur et les agents:
- dimensions du plateau et codage des directions
- valeurs des tuiles par rang et score intrinsèque
- composition du sac de tuiles de base
"""

# Plateau 4x4, rangs codés sur 4 bits
BOARD_SIZE: int = 4
NUM_CELLS: int = BOARD_SIZE * BOARD_SIZE
MAX_RANK: int = 15

# Directions de glissement (codage des opcodes)
UP: int = 0
RIGHT: int = 1
DOWN: int = 2
LEFT: int = 3
DIRECTIONS = (UP, RIGHT, DOWN, LEFT)
# Dernière direction "initiale" : aucune glissade encore jouée
INITIAL: int = 4

# Sentinelle renvoyée par un coup illégal
ILLEGAL: int = -1

# Sac de tuiles de base (1, 2, 3) : quatre exemplaires de chaque
BASIC_TILES = (1, 2, 3)
BAG_COPIES: int = 4

# Cases où le placeur peut poser une tuile selon la dernière direction
PLACEMENT_SPACES = {
    UP: (12, 13, 14, 15),
    RIGHT: (0, 4, 8, 12),
    DOWN: (0, 1, 2, 3),
    LEFT: (3, 7, 11, 15),
    INITIAL: tuple(range(NUM_CELLS)),
}


def tile_value(rank: int) -> int:
    """Valeur affichée d'une tuile de rang `rank` (0, 1, 2, 3, 6, 12, ...)."""

    if rank < 3:
        return rank
    return 3 * (2 ** (rank - 3))


def rank_score(rank: int) -> int:
    """Points rapportés par une tuile en fin de partie."""

    if rank < 3:
        return 0
    return 3 ** (rank - 2)


__all__ = [
    "BOARD_SIZE",
    "NUM_CELLS",
    "MAX_RANK",
    "UP",
    "RIGHT",
    "DOWN",
    "LEFT",
    "DIRECTIONS",
    "INITIAL",
    "ILLEGAL",
    "BASIC_TILES",
    "BAG_COPIES",
    "PLACEMENT_SPACES",
    "tile_value",
    "rank_score",
]
