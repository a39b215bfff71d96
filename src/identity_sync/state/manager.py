"""State manager for loading and saving observed state."""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from identity_sync.utils.logging import get_logger

from .models import State

logger = get_logger(__name__)


class StateError(Exception):
    """Base exception for state management errors."""

    pass


class StateNotFoundError(StateError):
    """Exception raised when state file does not exist."""

    pass


class StateManager:
    """Loads and atomically saves the observed-state file."""

    def __init__(self, state_path: str):
        """
        Initialize StateManager.

        Args:
            state_path: Path to the state file
        """
        self.state_path = Path(state_path)
        self._current_state: Optional[State] = None

    @property
    def current(self) -> Optional[State]:
        return self._current_state

    def load(self) -> State:
        """
        Load state from file.

        Returns:
            State object

        Raises:
            StateNotFoundError: If state file does not exist
            StateError: If state file is corrupted or invalid
        """
        if not self.state_path.exists():
            raise StateNotFoundError(f"State file not found: {self.state_path}")

        try:
            with open(self.state_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateError(f"Failed to parse state file: {e}")
        except OSError as e:
            raise StateError(f"Failed to load state file: {e}")

        try:
            self._current_state = State.from_dict(data)
        except ValidationError as e:
            raise StateError(f"Invalid state file: {e}")

        logger.debug(f"Loaded {len(self._current_state.resources)} resources from {self.state_path}")
        return self._current_state

    def load_or_empty(self) -> State:
        """Load state, starting from an empty state if there is no file yet."""
        if not self.exists():
            self._current_state = State()
            return self._current_state
        return self.load()

    def save(self, state: State) -> None:
        """
        Save state to file.

        Args:
            state: State object to save

        Raises:
            StateError: If state cannot be saved
        """
        self.state_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # Write to temporary file first
            temp_path = self.state_path.with_suffix(".tmp")
            with open(temp_path, "w") as f:
                json.dump(state.to_dict(), f, indent=2)

            # Atomic rename
            temp_path.replace(self.state_path)
            self._current_state = state
        except OSError as e:
            raise StateError(f"Failed to save state file: {e}")

    def initialize(self) -> State:
        """
        Initialize a new, empty state file.

        Returns:
            New State object
        """
        state = State()
        self.save(state)
        return state

    def exists(self) -> bool:
        """Check if state file exists."""
        return self.state_path.exists()
