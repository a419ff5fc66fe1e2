"""Politiques de jeu: placeur/glisseur aléatoires, glisseur glouton et agent TD.

Toutes les politiques partagent l'interface minimale `AgentPolicy`
(`select_action(board) -> Action`) utilisée par la simulation headless.

La décision gloutonne sur un coup d'avance est exposée sous forme de fonction
pure, `choose_slide`, qui reçoit l'état d'apprentissage précédent et renvoie le
suivant; `TDLearningPolicy` se contente de conserver cet état entre deux appels.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from threes.engine.actions import Action, NoOp, Place, Slide
from threes.engine.board import Board
from threes.engine.rules import BASIC_TILES, DIRECTIONS, ILLEGAL, INITIAL, PLACEMENT_SPACES
from threes.rl.config import AgentConfig, EpisodeBoundary
from threes.rl.features import ROW_COLUMN_TUPLES, TuplePattern, extract_features
from threes.rl.learner import (
    DEFAULT_ALPHA,
    LearningState,
    maybe_update,
    terminal_update,
)
from threes.rl.weights import ValueTable, WeightFileError, WeightIOResult

logger = logging.getLogger(__name__)


class AgentPolicy:
    """Interface minimale utilisée par la simulation headless.

    Les options non reconnues de la configuration restent consultables via
    `option(key)` et peuvent être modifiées en cours de route par `notify`.
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        role: str = "unknown",
        options: Mapping[str, str] | None = None,
    ) -> None:
        self._name = name or self.__class__.__name__
        self._role = role
        self._options: Dict[str, str] = dict(options or {})

    @property
    def name(self) -> str:
        return self._name

    @property
    def role(self) -> str:
        return self._role

    def option(self, key: str, default: str | None = None) -> str | None:
        return self._options.get(key, default)

    def notify(self, message: str) -> None:
        """Enregistre une option ``clé=valeur`` reçue après la construction."""

        key, _, value = message.partition("=")
        self._options[key] = value

    def open_episode(self) -> None:
        pass

    def close_episode(self, *, truncated: bool = False) -> None:
        pass

    def select_action(self, board: Board) -> Action:
        raise NotImplementedError

    def take_action(self, board: Board) -> Action:
        return self.select_action(board)


class RandomSlidePolicy(AgentPolicy):
    """Glisseur uniformément aléatoire parmi les directions légales."""

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        name: str = "slide",
        role: str = "slider",
        options: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(name=name, role=role, options=options)
        self._random = rng or random.Random(seed)

    @classmethod
    def from_args(cls, args: str = "") -> "RandomSlidePolicy":
        """Construit le glisseur depuis une chaîne ``seed=... name=...``."""

        return cls.from_config(AgentConfig.from_args(args, name="slide", role="slider"))

    @classmethod
    def from_config(cls, config: AgentConfig) -> "RandomSlidePolicy":
        return cls(seed=config.seed, name=config.name, role=config.role, options=config.extra)

    def select_action(self, board: Board) -> Action:
        directions = list(DIRECTIONS)
        self._random.shuffle(directions)
        for direction in directions:
            if board.copy().slide(direction) != ILLEGAL:
                return Slide(direction)
        return NoOp()


class RandomPlacerPolicy(AgentPolicy):
    """Placeur aléatoire: pose la tuile annoncée et tire la suivante du sac.

    Les cases autorisées dépendent de la dernière glissade (côté opposé au
    mouvement); au début de partie, toute case vide est admise.
    """

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        name: str = "place",
        role: str = "placer",
        options: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(name=name, role=role, options=options)
        self._random = rng or random.Random(seed)

    @classmethod
    def from_args(cls, args: str = "") -> "RandomPlacerPolicy":
        return cls.from_config(AgentConfig.from_args(args, name="place", role="placer"))

    @classmethod
    def from_config(cls, config: AgentConfig) -> "RandomPlacerPolicy":
        return cls(seed=config.seed, name=config.name, role=config.role, options=config.extra)

    def select_action(self, board: Board) -> Action:
        space = list(PLACEMENT_SPACES.get(board.last, PLACEMENT_SPACES[INITIAL]))
        self._random.shuffle(space)
        for position in space:
            if board(position) != 0:
                continue

            bag = self._shuffled_bag(board)
            tile = board.hint or bag.pop()
            if not bag:
                bag = self._shuffled_bag(Board())
            hint = bag.pop()
            return Place(position=position, tile=tile, hint=hint)
        return NoOp()

    def _shuffled_bag(self, board: Board) -> List[int]:
        bag = [tile for tile in BASIC_TILES for _ in range(board.bag(tile))]
        self._random.shuffle(bag)
        return bag


# -- Décision gloutonne ----------------------------------------------------------


@dataclass(frozen=True)
class MoveEvaluation:
    """Évaluation d'une direction légale."""

    direction: int
    reward: int
    features: Tuple[int, ...]
    value: float

    @property
    def score(self) -> float:
        return self.reward + self.value


@dataclass(frozen=True)
class Decision:
    """Résultat de `choose_slide`: action jouée et nouvel état d'apprentissage."""

    action: Action
    learning_state: Optional[LearningState]
    best: Optional[MoveEvaluation] = None
    update_step: Optional[float] = None


def evaluate_moves(
    table: ValueTable,
    before: Board,
    patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
) -> Tuple[MoveEvaluation, ...]:
    """Évalue chaque direction légale, dans l'ordre 0, 1, 2, 3.

    La récompense est la variation du score intrinsèque du jeu; la valeur est
    celle apprise pour la grille obtenue avant insertion d'une nouvelle tuile.
    """

    base_score = before.value()
    evaluations: List[MoveEvaluation] = []
    for direction in DIRECTIONS:
        after = before.copy()
        if after.slide(direction) == ILLEGAL:
            continue
        features = extract_features(after.grid, patterns)
        evaluations.append(
            MoveEvaluation(
                direction=direction,
                reward=after.value() - base_score,
                features=features,
                value=table.value_of(features),
            )
        )
    return tuple(evaluations)


def best_move(evaluations: Sequence[MoveEvaluation]) -> Optional[MoveEvaluation]:
    """Meilleur score strict; à égalité, la première direction rencontrée."""

    best: Optional[MoveEvaluation] = None
    best_score = -math.inf
    for evaluation in evaluations:
        if evaluation.score > best_score:
            best, best_score = evaluation, evaluation.score
    return best


def choose_slide(
    table: ValueTable,
    before: Board,
    learning_state: Optional[LearningState] = None,
    *,
    alpha: float = DEFAULT_ALPHA,
    train: bool = True,
    patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
) -> Decision:
    """Choisit la glissade gloutonne et fait avancer l'apprentissage d'un pas.

    Si `train` est vrai et qu'un état précédent existe, ses poids sont
    corrigés vers le score du coup retenu. Le nouvel état d'apprentissage est
    l'afterstate retenu, évalué après cette correction. Sans coup légal,
    renvoie `NoOp` et l'état inchangé.
    """

    best = best_move(evaluate_moves(table, before, patterns))
    if best is None:
        return Decision(action=NoOp(), learning_state=learning_state)

    step = maybe_update(table, learning_state, best.score, alpha) if train else None
    next_state = LearningState(features=best.features, value=table.value_of(best.features))
    return Decision(
        action=Slide(best.direction),
        learning_state=next_state,
        best=best,
        update_step=step,
    )


class GreedyValuePolicy(AgentPolicy):
    """Glisseur glouton sur une table figée (aucune mise à jour)."""

    def __init__(
        self,
        table: ValueTable,
        *,
        patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
        name: str = "greedy",
    ) -> None:
        super().__init__(name=name, role="slider")
        table.check_patterns(patterns)
        self._table = table
        self._patterns = tuple(patterns)

    @property
    def table(self) -> ValueTable:
        return self._table

    def select_action(self, board: Board) -> Action:
        return choose_slide(self._table, board, train=False, patterns=self._patterns).action


def build_value_table(config: AgentConfig, patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES) -> ValueTable:
    """Table décrite par `config`: chargée (`load`), ou initialisée à zéro.

    Raises:
        WeightFileError: si `load` est fourni et que le chargement échoue.
    """

    table: Optional[ValueTable] = None
    if config.init:
        table = ValueTable.for_patterns(patterns)
    if config.load is not None:
        table = ValueTable.load(config.load).unwrap()
    if table is None:
        logger.warning("Ni init ni load fournis pour %s: poids initialisés à zéro", config.name)
        table = ValueTable.for_patterns(patterns)
    return table


class TDLearningPolicy(AgentPolicy):
    """Glisseur glouton qui apprend ses poids en ligne par TD(0).

    L'agent possède sa table: deux agents qui apprennent en parallèle doivent
    chacun disposer de la leur.
    """

    def __init__(
        self,
        table: ValueTable,
        *,
        alpha: float = DEFAULT_ALPHA,
        patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
        boundary: EpisodeBoundary = EpisodeBoundary.RESET,
        save_path: Optional[str] = None,
        name: str = "td",
        role: str = "slider",
        options: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(name=name, role=role, options=options)
        table.check_patterns(patterns)
        self._table = table
        self._alpha = float(alpha)
        self._patterns = tuple(patterns)
        self._boundary = boundary
        self._save_path = save_path
        self._learning_state: Optional[LearningState] = None

    @classmethod
    def from_args(cls, args: str = "") -> "TDLearningPolicy":
        """Construit l'agent depuis une chaîne ``init load=... save=... alpha=...``."""

        config = AgentConfig.from_args(args, name="td", role="slider")
        return cls.from_config(config)

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES,
    ) -> "TDLearningPolicy":
        return cls(
            build_value_table(config, patterns),
            alpha=config.alpha,
            patterns=patterns,
            boundary=config.boundary,
            save_path=config.save,
            name=config.name,
            role=config.role,
            options=config.extra,
        )

    @property
    def table(self) -> ValueTable:
        return self._table

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def boundary(self) -> EpisodeBoundary:
        return self._boundary

    @property
    def learning_state(self) -> Optional[LearningState]:
        return self._learning_state

    @property
    def trained(self) -> bool:
        """Vrai dès qu'un afterstate précédent peut servir de base à une mise à jour."""

        return self._learning_state is not None

    def select_action(self, board: Board) -> Action:
        decision = choose_slide(
            self._table,
            board,
            self._learning_state,
            alpha=self._alpha,
            patterns=self._patterns,
        )
        self._learning_state = decision.learning_state
        if decision.best is not None:
            logger.debug(
                "%s: direction=%d score=%.4f",
                self.name,
                decision.best.direction,
                decision.best.score,
            )
        return decision.action

    def update(self, target: float) -> Optional[float]:
        """Corrige le dernier afterstate retenu vers `target`."""

        return maybe_update(self._table, self._learning_state, target, self._alpha)

    def last_update(self) -> Optional[float]:
        """Corrige le dernier afterstate vers 0 (état terminal) et oublie l'état."""

        if self._learning_state is None:
            return None
        step = terminal_update(self._table, self._learning_state, self._alpha)
        self._learning_state = None
        return step

    def open_episode(self) -> None:
        if self._boundary is EpisodeBoundary.RESET:
            self._learning_state = None

    def close_episode(self, *, truncated: bool = False) -> None:
        """Applique la mise à jour terminale en mode RESET.

        Une partie interrompue (`truncated`) n'a pas atteint d'état terminal: l'état
        d'apprentissage est abandonné sans correction vers 0.
        """

        if self._boundary is not EpisodeBoundary.RESET:
            return
        if truncated:
            self._learning_state = None
        else:
            self.last_update()

    def shutdown(self) -> Optional[WeightIOResult]:
        """Enregistre la table si `save` est configuré.

        Raises:
            WeightFileError: si l'écriture échoue.
        """

        if self._save_path is None:
            return None
        result = self._table.save(self._save_path)
        if not result.ok:
            raise WeightFileError(result)
        return result

    def __enter__(self) -> "TDLearningPolicy":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


__all__ = [
    "AgentPolicy",
    "Decision",
    "GreedyValuePolicy",
    "MoveEvaluation",
    "RandomPlacerPolicy",
    "RandomSlidePolicy",
    "TDLearningPolicy",
    "best_move",
    "build_value_table",
    "choose_slide",
    "evaluate_moves",
]
