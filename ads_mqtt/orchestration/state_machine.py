from enum import Enum, auto
import logging

class BridgeState(Enum):
    IDLE = auto()
    CONNECTING = auto()
    POLLING = auto()
    STOPPING = auto()
    STOPPED = auto()

class BridgeStateMachine:
    """Process-wide lifecycle state of the bridge"""

    def __init__(self):
        self.current_state = BridgeState.IDLE
        self.logger = logging.getLogger(self.__class__.__name__)
        self.valid_transitions = {
            BridgeState.IDLE: {BridgeState.CONNECTING, BridgeState.STOPPING},
            BridgeState.CONNECTING: {BridgeState.POLLING, BridgeState.STOPPING},
            BridgeState.POLLING: {BridgeState.STOPPING},
            BridgeState.STOPPING: {BridgeState.STOPPED},
            BridgeState.STOPPED: set()
        }

    def can_transition_to(self, new_state: BridgeState) -> bool:
        return new_state in self.valid_transitions.get(self.current_state, set())

    def transition_to(self, new_state: BridgeState) -> bool:
        if self.can_transition_to(new_state):
            self.logger.debug(f"State transition: {self.current_state.name} -> {new_state.name}")
            self.current_state = new_state
            return True
        else:
            self.logger.error(f"Invalid state transition: {self.current_state.name} -> {new_state.name}")
            return False

    @property
    def is_stopping(self) -> bool:
        return self.current_state in (BridgeState.STOPPING, BridgeState.STOPPED)
