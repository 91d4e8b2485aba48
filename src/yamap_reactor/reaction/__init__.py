"""Reaction dispatch contracts."""

from .dispatcher import ReactionDispatcher, ReactionPolicy, ReactionSelectors

__all__ = ["ReactionDispatcher", "ReactionPolicy", "ReactionSelectors"]
