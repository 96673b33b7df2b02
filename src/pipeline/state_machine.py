"""State machines for pipeline runs and per-source processing."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class ControllerState(str, Enum):
    """State of the pipeline controller.

    - IDLE: No run in progress; the published feed is stable
    - RUNNING: A run is fetching, aggregating or ranking
    """

    IDLE = "IDLE"
    RUNNING = "RUNNING"


class SourceState(str, Enum):
    """State of a source within one run.

    - SOURCE_PENDING: Not yet started
    - SOURCE_FETCHING: Fetch collaborator call in progress
    - SOURCE_BUILDING: Building and aggregating headlines
    - SOURCE_DONE: Successfully completed
    - SOURCE_FAILED: Failed with a fetch error
    """

    SOURCE_PENDING = "SOURCE_PENDING"
    SOURCE_FETCHING = "SOURCE_FETCHING"
    SOURCE_BUILDING = "SOURCE_BUILDING"
    SOURCE_DONE = "SOURCE_DONE"
    SOURCE_FAILED = "SOURCE_FAILED"


_CONTROLLER_TRANSITIONS: dict[ControllerState, set[ControllerState]] = {
    ControllerState.IDLE: {ControllerState.RUNNING},
    ControllerState.RUNNING: {ControllerState.IDLE},
}

_SOURCE_TRANSITIONS: dict[SourceState, set[SourceState]] = {
    SourceState.SOURCE_PENDING: {
        SourceState.SOURCE_FETCHING,
        SourceState.SOURCE_FAILED,
    },
    SourceState.SOURCE_FETCHING: {
        SourceState.SOURCE_BUILDING,
        SourceState.SOURCE_FAILED,
    },
    SourceState.SOURCE_BUILDING: {SourceState.SOURCE_DONE, SourceState.SOURCE_FAILED},
    SourceState.SOURCE_DONE: set(),  # Terminal state
    SourceState.SOURCE_FAILED: set(),  # Terminal state
}


class ControllerStateTransitionError(Exception):
    """Raised when an illegal controller transition is attempted."""

    def __init__(self, from_state: ControllerState, to_state: ControllerState) -> None:
        """Initialize the transition error.

        Args:
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal controller transition: {from_state.value} -> {to_state.value}"
        )


class SourceStateTransitionError(Exception):
    """Raised when an illegal source transition is attempted."""

    def __init__(
        self,
        source_id: str,
        from_state: SourceState,
        to_state: SourceState,
    ) -> None:
        """Initialize the transition error.

        Args:
            source_id: Identifier of the source.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.source_id = source_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for source '{source_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class ControllerStateMachine:
    """Tracks whether a pipeline run is in progress.

    Transitions are not thread-safe on their own; the controller guards
    them with its run lock.
    """

    def __init__(self) -> None:
        """Initialize the state machine in IDLE."""
        self._state = ControllerState.IDLE
        self._log = logger.bind(component="controller")

    @property
    def state(self) -> ControllerState:
        """Get the current state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if a run is in progress."""
        return self._state == ControllerState.RUNNING

    def can_transition_to(self, target: ControllerState) -> bool:
        """Check if a transition to the target state is valid."""
        return target in _CONTROLLER_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: ControllerState, run_id: str = "") -> None:
        """Transition to a new state.

        Args:
            target: The target state.
            run_id: Run the transition belongs to, for logging.

        Raises:
            ControllerStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                run_id=run_id,
                from_state=self._state.value,
                to_state=target.value,
            )
            raise ControllerStateTransitionError(self._state, target)

        old_state = self._state
        self._state = target
        self._log.debug(
            "state_transition",
            run_id=run_id,
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_running(self, run_id: str = "") -> None:
        """Transition to RUNNING state."""
        self.transition_to(ControllerState.RUNNING, run_id)

    def to_idle(self, run_id: str = "") -> None:
        """Transition to IDLE state."""
        self.transition_to(ControllerState.IDLE, run_id)


class SourceStateMachine:
    """Manages state transitions for a source during a run.

    Enforces valid transitions and logs all state changes.
    """

    def __init__(
        self,
        source_id: str,
        run_id: str,
        initial_state: SourceState = SourceState.SOURCE_PENDING,
    ) -> None:
        """Initialize the state machine.

        Args:
            source_id: Identifier for the source.
            run_id: Identifier for the current run.
            initial_state: Starting state.
        """
        self._source_id = source_id
        self._state = initial_state
        self._log = logger.bind(
            component="controller",
            run_id=run_id,
            source_id=source_id,
        )

    @property
    def source_id(self) -> str:
        """Get the source identifier."""
        return self._source_id

    @property
    def state(self) -> SourceState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in (SourceState.SOURCE_DONE, SourceState.SOURCE_FAILED)

    def can_transition_to(self, target: SourceState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _SOURCE_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: SourceState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            SourceStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise SourceStateTransitionError(
                source_id=self._source_id,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target
        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_fetching(self) -> None:
        """Transition to SOURCE_FETCHING state."""
        self.transition_to(SourceState.SOURCE_FETCHING)

    def to_building(self) -> None:
        """Transition to SOURCE_BUILDING state."""
        self.transition_to(SourceState.SOURCE_BUILDING)

    def to_done(self) -> None:
        """Transition to SOURCE_DONE state."""
        self.transition_to(SourceState.SOURCE_DONE)

    def to_failed(self) -> None:
        """Transition to SOURCE_FAILED state."""
        self.transition_to(SourceState.SOURCE_FAILED)
