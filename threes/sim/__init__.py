"""Simulation headless de parties Threes!."""

from .runner import BatchSummary, EpisodeRunner, EpisodeSummary

__all__ = ["BatchSummary", "EpisodeRunner", "EpisodeSummary"]
