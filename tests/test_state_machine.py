"""Tests for the bridge lifecycle state machine."""

import pytest

from ads_mqtt.orchestration.state_machine import BridgeState, BridgeStateMachine


class TestBridgeStateMachine:

    def test_starts_idle(self):
        assert BridgeStateMachine().current_state == BridgeState.IDLE

    def test_normal_lifecycle(self):
        machine = BridgeStateMachine()
        for state in (BridgeState.CONNECTING, BridgeState.POLLING, BridgeState.STOPPING, BridgeState.STOPPED):
            assert machine.transition_to(state)
        assert machine.current_state == BridgeState.STOPPED

    def test_failed_startup_goes_straight_to_stopping(self):
        machine = BridgeStateMachine()
        machine.transition_to(BridgeState.CONNECTING)
        assert machine.transition_to(BridgeState.STOPPING)

    @pytest.mark.parametrize("path", [
        [BridgeState.POLLING],
        [BridgeState.STOPPED],
        [BridgeState.CONNECTING, BridgeState.STOPPED],
        [BridgeState.CONNECTING, BridgeState.POLLING, BridgeState.CONNECTING],
    ])
    def test_invalid_transitions_are_refused(self, path):
        machine = BridgeStateMachine()
        *valid, invalid = path
        for state in valid:
            assert machine.transition_to(state)
        before = machine.current_state

        assert not machine.transition_to(invalid)
        assert machine.current_state == before

    def test_stopped_is_terminal(self):
        machine = BridgeStateMachine()
        machine.transition_to(BridgeState.STOPPING)
        machine.transition_to(BridgeState.STOPPED)

        assert all(not machine.can_transition_to(state) for state in BridgeState)

    def test_is_stopping(self):
        machine = BridgeStateMachine()
        assert not machine.is_stopping
        machine.transition_to(BridgeState.STOPPING)
        assert machine.is_stopping
        machine.transition_to(BridgeState.STOPPED)
        assert machine.is_stopping
