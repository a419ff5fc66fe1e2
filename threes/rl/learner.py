"""Mise à jour TD(0) des poids sur les afterstates.

L'agent évalue `V(s')` pour l'afterstate choisi; au coup suivant, la valeur
observée `r + V(s'')` sert de cible pour corriger `V(s')`:

    plan[i][f_i] += alpha * (cible - V(s'))

Aucun écrêtage ni décroissance n'est appliqué; l'amplitude des mises à jour
est contrôlée uniquement par `alpha`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from threes.rl.weights import ValueTable

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.0125


@dataclass(frozen=True)
class LearningState:
    """Features et valeur du dernier afterstate retenu."""

    features: Tuple[int, ...]
    value: float


def td_update(table: ValueTable, state: LearningState, target: float, alpha: float) -> float:
    """Corrige chaque poids utilisé par `state` vers `target`.

    Returns:
        Le pas appliqué à chaque poids, ``alpha * (target - state.value)``.
    """

    step = alpha * (target - state.value)
    for plane, index in zip(table, state.features):
        plane.values[index] += step
    logger.debug("TD update: cible=%.4f valeur=%.4f pas=%.6f", target, state.value, step)
    return step


def terminal_update(table: ValueTable, state: LearningState, alpha: float) -> float:
    """Mise à jour de fin d'épisode: aucun gain futur après un état terminal."""

    return td_update(table, state, 0.0, alpha)


def maybe_update(
    table: ValueTable,
    state: Optional[LearningState],
    target: float,
    alpha: float,
) -> Optional[float]:
    """Applique `td_update` seulement si un état précédent existe."""

    if state is None:
        return None
    return td_update(table, state, target, alpha)


__all__ = ["DEFAULT_ALPHA", "LearningState", "maybe_update", "td_update", "terminal_update"]
