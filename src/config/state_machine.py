"""Configuration loading state machine."""

from enum import Enum, auto
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class ConfigState(Enum):
    """Configuration loading states.

    State transitions:
        UNLOADED -> LOADING: Start reading the engine file
        LOADING -> VALIDATED: File parsed and validated
        LOADING -> FAILED: Read, parse or validation error
        VALIDATED -> READY: Configuration handed to the caller
        READY -> LOADING: Reload of a changed file
        FAILED -> LOADING: Retry after the file was fixed
    """

    UNLOADED = auto()
    LOADING = auto()
    VALIDATED = auto()
    READY = auto()
    FAILED = auto()


class ConfigStateError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: ConfigState, to_state: ConfigState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid config state transition: {from_state.name} -> {to_state.name}"
        )


class ConfigStateMachine:
    """Enforces the config load lifecycle and logs every state change."""

    VALID_TRANSITIONS: ClassVar[dict[ConfigState, set[ConfigState]]] = {
        ConfigState.UNLOADED: {ConfigState.LOADING},
        ConfigState.LOADING: {ConfigState.VALIDATED, ConfigState.FAILED},
        ConfigState.VALIDATED: {ConfigState.READY, ConfigState.FAILED},
        ConfigState.READY: {ConfigState.LOADING},
        ConfigState.FAILED: {ConfigState.LOADING},
    }

    def __init__(self, run_id: str) -> None:
        """Initialize the state machine in UNLOADED state.

        Args:
            run_id: Run identifier for logging.
        """
        self._state = ConfigState.UNLOADED
        self._log = logger.bind(component="config", run_id=run_id)

    @property
    def state(self) -> ConfigState:
        """Get the current state."""
        return self._state

    def can_transition(self, to_state: ConfigState) -> bool:
        """Check if a transition to the given state is valid.

        Args:
            to_state: The target state.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: ConfigState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            ConfigStateError: If the transition is invalid.
        """
        if not self.can_transition(to_state):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise ConfigStateError(self._state, to_state)
        self._log.debug(
            "state_transition",
            from_state=self._state.name,
            to_state=to_state.name,
        )
        self._state = to_state

    def is_ready(self) -> bool:
        """Check if configuration is ready for use."""
        return self._state == ConfigState.READY
