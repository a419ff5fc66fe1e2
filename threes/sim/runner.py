"""Boucle headless d'une partie Threes!.

Une partie commence par la pose de `initial_tiles` tuiles par le placeur, puis
glisseur et placeur jouent en alternance jusqu'à ce que l'un d'eux renvoie
`NoOp` ou une action illégale. Les deux agents reçoivent `open_episode` et
`close_episode`, ce qui déclenche la mise à jour terminale des agents TD.
Une partie coupée par `max_steps` est signalée par `truncated=True`: elle n'a
pas atteint d'état terminal et l'agent TD ne corrige pas son dernier état vers 0.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Tuple

from threes.engine.actions import Action, NoOp, Slide
from threes.engine.board import Board
from threes.engine.rules import ILLEGAL
from threes.rl.policies import AgentPolicy

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_TILES = 9


@dataclass(frozen=True)
class EpisodeSummary:
    """Résume une partie jouée."""

    steps: int
    score: int
    max_rank: int
    moves: Tuple[Action, ...] = field(compare=False)
    final_board: Board = field(compare=False)
    truncated: bool = False
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def slides(self) -> int:
        return sum(1 for move in self.moves if isinstance(move, Slide))


@dataclass(frozen=True)
class BatchSummary:
    """Agrège les métriques de plusieurs parties."""

    episodes: Tuple[EpisodeSummary, ...]
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def total_episodes(self) -> int:
        return len(self.episodes)

    @property
    def mean_score(self) -> float:
        if not self.episodes:
            return 0.0
        return sum(episode.score for episode in self.episodes) / len(self.episodes)

    @property
    def max_score(self) -> int:
        return max((episode.score for episode in self.episodes), default=0)


def _validate_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} doit être strictement positif (reçu: {value})")


class EpisodeRunner:
    """Orchestre les parties entre un glisseur et un placeur."""

    def __init__(
        self,
        *,
        slider: AgentPolicy,
        placer: AgentPolicy,
        initial_tiles: int = DEFAULT_INITIAL_TILES,
    ) -> None:
        if initial_tiles < 0:
            raise ValueError("initial_tiles doit être positif ou nul")
        self._slider = slider
        self._placer = placer
        self._initial_tiles = initial_tiles

    @property
    def slider(self) -> AgentPolicy:
        return self._slider

    @property
    def placer(self) -> AgentPolicy:
        return self._placer

    def run_episode(self, *, max_steps: int = 100_000, board: Board | None = None) -> EpisodeSummary:
        _validate_positive("max_steps", max_steps)

        start = time.perf_counter()
        board = board.copy() if board is not None else Board()
        moves: List[Action] = []
        agents = (self._slider, self._placer)
        for agent in agents:
            agent.open_episode()

        truncated = False
        for _ in range(self._initial_tiles):
            if not self._play(self._placer, board, moves):
                break
        else:
            turn = 0
            while True:
                if len(moves) >= max_steps:
                    truncated = True
                    break
                if not self._play(agents[turn % 2], board, moves):
                    break
                turn += 1

        for agent in agents:
            agent.close_episode(truncated=truncated)

        summary = EpisodeSummary(
            steps=len(moves),
            score=board.value(),
            max_rank=board.max_rank(),
            moves=tuple(moves),
            final_board=board,
            truncated=truncated,
            duration_seconds=time.perf_counter() - start,
        )
        logger.debug("Partie terminée: %d coups, score=%d", summary.steps, summary.score)
        return summary

    @staticmethod
    def _play(agent: AgentPolicy, board: Board, moves: List[Action]) -> bool:
        action = agent.take_action(board)
        if isinstance(action, NoOp):
            return False
        if action.apply(board) == ILLEGAL:
            logger.warning("Action illégale de %s: %s", agent.name, action)
            return False
        moves.append(action)
        return True

    def run_batch(
        self,
        *,
        num_episodes: int,
        max_steps: int = 100_000,
        log_every: int = 0,
    ) -> BatchSummary:
        _validate_positive("num_episodes", num_episodes)

        start = time.perf_counter()
        episodes: List[EpisodeSummary] = []
        for index in range(1, num_episodes + 1):
            episodes.append(self.run_episode(max_steps=max_steps))
            if log_every and index % log_every == 0:
                recent = episodes[-log_every:]
                logger.info(
                    "%d parties: score moyen=%.1f (sur les %d dernières), max=%d",
                    index,
                    sum(episode.score for episode in recent) / len(recent),
                    len(recent),
                    max(episode.score for episode in recent),
                )
        return BatchSummary(episodes=tuple(episodes), duration_seconds=time.perf_counter() - start)


__all__ = ["BatchSummary", "EpisodeRunner", "EpisodeSummary", "DEFAULT_INITIAL_TILES"]
