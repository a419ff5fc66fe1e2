"""Configuration des agents à partir d'une chaîne d'arguments.

Les arguments sont des jetons séparés par des espaces, de la forme
``clé=valeur``; un jeton sans ``=`` est un drapeau dont la valeur est sa clé.
Les valeurs par défaut ``name=unknown role=unknown`` sont lues en premier, un
jeton ultérieur écrase donc une clé déjà vue.

Exemple :
    >>> config = AgentConfig.from_args("init alpha=0.1 save=weights.bin")
    >>> config.alpha
    0.1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from threes.rl.learner import DEFAULT_ALPHA

_DEFAULT_ARGS = "name=unknown role=unknown"


class EpisodeBoundary(Enum):
    """Traitement de l'état d'apprentissage entre deux épisodes."""

    # open_episode efface l'état, close_episode applique la mise à jour terminale
    RESET = "reset"
    # une seule trajectoire continue sur toute l'exécution
    CONTINUOUS = "continuous"


def parse_agent_args(args: str = "") -> Dict[str, str]:
    """Découpe la chaîne d'arguments en dictionnaire clé -> valeur."""

    meta: Dict[str, str] = {}
    for pair in f"{_DEFAULT_ARGS} {args}".split():
        key, sep, value = pair.partition("=")
        meta[key] = value if sep else key
    return meta


@dataclass(frozen=True)
class AgentConfig:
    """Options reconnues à la construction d'un agent."""

    name: str = "unknown"
    role: str = "unknown"
    init: bool = False
    load: Optional[str] = None
    save: Optional[str] = None
    alpha: float = DEFAULT_ALPHA
    seed: Optional[int] = None
    boundary: EpisodeBoundary = EpisodeBoundary.RESET
    extra: Dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def from_args(cls, args: str = "", **defaults: str) -> "AgentConfig":
        """Construit la configuration; lève ValueError sur une valeur invalide."""

        prefix = " ".join(f"{key}={value}" for key, value in defaults.items())
        meta = parse_agent_args(f"{prefix} {args}")
        known = {"name", "role", "init", "load", "save", "alpha", "seed", "boundary"}

        try:
            alpha = float(meta["alpha"]) if "alpha" in meta else DEFAULT_ALPHA
        except ValueError:
            raise ValueError(f"alpha invalide: {meta['alpha']!r}") from None
        try:
            seed = int(meta["seed"]) if "seed" in meta else None
        except ValueError:
            raise ValueError(f"seed invalide: {meta['seed']!r}") from None
        try:
            boundary = EpisodeBoundary(meta.get("boundary", EpisodeBoundary.RESET.value))
        except ValueError:
            raise ValueError(f"boundary invalide: {meta['boundary']!r}") from None

        return cls(
            name=meta["name"],
            role=meta["role"],
            init="init" in meta,
            load=meta.get("load"),
            save=meta.get("save"),
            alpha=alpha,
            seed=seed,
            boundary=boundary,
            extra={key: value for key, value in meta.items() if key not in known},
        )


__all__ = ["AgentConfig", "EpisodeBoundary", "parse_agent_args"]
