import pytest

from playback.states import (
    LIVE_STATES,
    TRANSITIONS,
    Command,
    RunState,
    Signal,
    is_legal,
    next_state,
)


class TestRunState:
    def test_live_states_hold_a_source(self):
        assert {s for s in RunState if s.holds_source} == LIVE_STATES
        assert LIVE_STATES == {RunState.RUNNING, RunState.PAUSED, RunState.STEPPING}

    def test_terminal_states(self):
        assert {s for s in RunState if s.is_terminal} == {RunState.COMPLETED, RunState.FAILED}


class TestTransitionTable:
    @pytest.mark.parametrize(
        "state,event,target",
        [
            (RunState.IDLE, Command.START, RunState.RUNNING),
            (RunState.IDLE, Command.STEP, RunState.STEPPING),
            (RunState.RUNNING, Command.PAUSE, RunState.PAUSED),
            (RunState.PAUSED, Command.RESUME, RunState.RUNNING),
            (RunState.PAUSED, Command.STEP, RunState.STEPPING),
            (RunState.STEPPING, Signal.RECEIVED, RunState.PAUSED),
            (RunState.RUNNING, Signal.RECEIVED, RunState.RUNNING),
            (RunState.RUNNING, Signal.FINAL, RunState.COMPLETED),
            (RunState.STEPPING, Signal.THREW, RunState.FAILED),
            (RunState.COMPLETED, Command.START, RunState.RUNNING),
            (RunState.FAILED, Command.START, RunState.RUNNING),
        ],
    )
    def test_legal_edges(self, state, event, target):
        assert next_state(state, event) == target
        assert is_legal(state, event)

    @pytest.mark.parametrize("state", list(RunState))
    def test_cancel_and_reset_legal_everywhere(self, state):
        assert next_state(state, Command.CANCEL) == RunState.IDLE
        assert next_state(state, Command.RESET) == RunState.IDLE

    @pytest.mark.parametrize(
        "state,command",
        [
            (RunState.RUNNING, Command.START),
            (RunState.PAUSED, Command.START),
            (RunState.IDLE, Command.PAUSE),
            (RunState.RUNNING, Command.RESUME),
            (RunState.RUNNING, Command.STEP),
            (RunState.COMPLETED, Command.STEP),
            (RunState.FAILED, Command.RESUME),
        ],
    )
    def test_illegal_edges(self, state, command):
        assert next_state(state, command) is None
        assert not is_legal(state, command)

    def test_no_edge_leaves_a_terminal_state_except_start_cancel_reset(self):
        for (state, event) in TRANSITIONS:
            if state.is_terminal:
                assert event in (Command.START, Command.CANCEL, Command.RESET)
