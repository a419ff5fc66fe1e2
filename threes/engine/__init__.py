"""Engine package exposing rules, board and actions modules."""

from . import rules  # re-export for convenience
from .actions import Action, NoOp, Place, Slide
from .board import Board

__all__ = ["rules", "Action", "Board", "NoOp", "Place", "Slide"]
