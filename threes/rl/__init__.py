"""Module RL pour l'agent Threes!.

Ce module contient les composants de l'approximation de valeur et de
l'apprentissage :

- features.py : Extraction des index n-tuple (4 lignes + 4 colonnes)
- weights.py : Plans de poids, fonction de valeur additive et format binaire
- learner.py : Mise à jour TD(0) et mise à jour terminale
- policies.py : Agents aléatoires, glisseur glouton et agent TD
- config.py : Lecture des options ``init load= save= alpha=``

Exemple :
    >>> from threes.engine.board import Board
    >>> from threes.rl.policies import TDLearningPolicy
    >>>
    >>> agent = TDLearningPolicy.from_args("init alpha=0.1")
    >>> action = agent.take_action(Board([[1, 2, 0, 0]] + [[0] * 4] * 3))
"""

from .config import AgentConfig, EpisodeBoundary, parse_agent_args
from .features import ROW_COLUMN_TUPLES, TuplePattern, extract_features
from .learner import LearningState, td_update, terminal_update
from .policies import (
    AgentPolicy,
    Decision,
    GreedyValuePolicy,
    RandomPlacerPolicy,
    RandomSlidePolicy,
    TDLearningPolicy,
    choose_slide,
)
from .weights import ValueTable, WeightFileError, WeightIOResult, WeightPlane

__all__ = [
    "AgentConfig",
    "AgentPolicy",
    "Decision",
    "EpisodeBoundary",
    "GreedyValuePolicy",
    "LearningState",
    "ROW_COLUMN_TUPLES",
    "RandomPlacerPolicy",
    "RandomSlidePolicy",
    "TDLearningPolicy",
    "TuplePattern",
    "ValueTable",
    "WeightFileError",
    "WeightIOResult",
    "WeightPlane",
    "choose_slide",
    "extract_features",
    "parse_agent_args",
    "td_update",
    "terminal_update",
]
