"""Observed-state storage."""

from .manager import StateError, StateManager, StateNotFoundError
from .models import ResourceState, State

__all__ = [
    "ResourceState",
    "State",
    "StateError",
    "StateManager",
    "StateNotFoundError",
]
