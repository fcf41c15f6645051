from enum import Enum

from genevo.exceptions import InvalidStateTransitionError


class EngineState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    PAUSED = "paused"
    FAILED = "failed"


TERMINAL_STATES = {
    EngineState.FAILED,
}

VALID_TRANSITIONS: dict[EngineState, set[EngineState]] = {
    EngineState.IDLE: {
        EngineState.INITIALIZING,
        EngineState.FAILED,
    },
    EngineState.INITIALIZING: {
        EngineState.RUNNING,
        EngineState.FAILED,
    },
    EngineState.RUNNING: {
        EngineState.PAUSED,
        EngineState.FAILED,
    },
    EngineState.PAUSED: {
        EngineState.RUNNING,
        EngineState.FAILED,
    },
    EngineState.FAILED: set(),
}


def is_valid_transition(current: EngineState, new: EngineState) -> bool:
    if current == new:
        return True
    return new in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: EngineState, new: EngineState) -> None:
    if not is_valid_transition(current, new):
        valid_next = VALID_TRANSITIONS.get(current, set())
        raise InvalidStateTransitionError(
            f"Invalid state transition: {current.value} -> {new.value}. "
            f"Valid transitions from {current.value}: {[s.value for s in valid_next]}"
        )


def is_terminal(state: EngineState) -> bool:
    return state in TERMINAL_STATES
