"""Agent TD n-tuple pour Threes! et ses variantes."""

__version__ = "0.1.0"
