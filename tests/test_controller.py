import asyncio
import logging

from conftest import failing_after, numbers
from playback import (
    AsyncioClock,
    ConfigurationError,
    InvalidTransition,
    LifecycleKind,
    PlaybackConfig,
    PlaybackController,
    RunRecorder,
    RunState,
    StepSourceError,
)


def step_tuples(recorder):
    return [(s.value, s.sequence, s.is_final) for s in recorder.steps]


class TestAcceptanceScenarios:
    def test_start_plays_to_completion(self, controller, clock, recorder):
        controller.set_speed(0)
        assert controller.start(["a", "b", "c"])
        clock.run_pending()

        assert step_tuples(recorder) == [("a", 0, False), ("b", 1, False), ("c", 2, True)]
        assert controller.state == RunState.COMPLETED
        assert recorder.kinds() == ["started", "completed"]

    def test_pause_before_first_pull(self, controller, clock, recorder):
        controller.start(numbers(3))
        assert controller.pause()
        clock.advance(10_000)

        assert controller.state == RunState.PAUSED
        assert recorder.steps == []

    def test_stepping_matches_automatic_playback(self, controller, recorder):
        assert controller.step(["a", "b", "c"])
        assert controller.state == RunState.PAUSED
        assert len(recorder.steps) == 1

        assert controller.step()
        assert controller.state == RunState.PAUSED
        assert controller.step()

        assert step_tuples(recorder) == [("a", 0, False), ("b", 1, False), ("c", 2, True)]
        assert controller.state == RunState.COMPLETED

    def test_reset_then_new_run_hides_old_steps(self, controller, clock, recorder):
        controller.start(numbers(10))
        clock.advance(250)
        first_run = controller.run_handle.run_id
        assert len(recorder.steps) > 0

        cursor = recorder.cursor
        controller.reset()
        controller.start(["x", "y"])
        clock.advance(10_000)

        delivered = [e for e in recorder.since(cursor) if e["kind"] == "step"]
        assert {e["run_id"] for e in delivered} == {controller.snapshot().run_id}
        assert first_run != controller.snapshot().run_id
        assert step_tuples(recorder) == [("x", 0, False), ("y", 1, True)]

    def test_second_pull_throws(self, controller, clock, recorder):
        boom = RuntimeError("second pull")
        controller.start(failing_after([1], boom))
        clock.advance(10_000)

        failures = [e for e in recorder.events if e.kind == LifecycleKind.FAILED]
        assert len(failures) == 1
        assert isinstance(failures[0].error, StepSourceError)
        assert failures[0].error.cause is boom
        assert controller.state == RunState.FAILED
        assert step_tuples(recorder) == [(1, 0, False)]

        clock.advance(10_000)
        assert len(recorder.steps) == 1


class TestPacing:
    def test_first_step_is_immediate_then_paced(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        assert len(recorder.steps) == 1
        clock.advance(99)
        assert len(recorder.steps) == 1
        clock.advance(1)
        assert len(recorder.steps) == 2

    def test_speed_change_applies_to_next_schedule_only(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        controller.set_speed(1000)

        clock.advance(100)
        assert len(recorder.steps) == 2
        clock.advance(999)
        assert len(recorder.steps) == 2
        clock.advance(1)
        assert len(recorder.steps) == 3

    def test_speed_is_clamped(self, controller):
        assert controller.set_speed(-5) == 0
        assert controller.set_speed(50_000) == 1000
        assert isinstance(controller.last_rejection, ConfigurationError)

    def test_speed_rejects_nan(self, controller):
        assert controller.set_speed(float("nan")) == 100
        assert controller.set_speed("fast") == 100
        assert controller.speed_ms == 100

    def test_presets(self, controller):
        assert controller.set_speed_preset("slow")
        assert controller.speed_ms == 500
        assert not controller.set_speed_preset("ludicrous")
        assert controller.speed_ms == 500

    def test_set_speed_never_changes_state(self, controller, clock):
        controller.start(numbers(3))
        controller.set_speed(10)
        assert controller.state == RunState.RUNNING


class TestCommands:
    def test_start_while_running_is_rejected(self, controller, recorder):
        controller.start(numbers(3))
        handle = controller.run_handle
        assert not controller.start(numbers(3))
        assert controller.run_handle == handle
        assert isinstance(controller.last_rejection, InvalidTransition)
        assert recorder.kinds() == ["started"]

    def test_start_without_source_or_factory(self, controller):
        assert not controller.start()
        assert controller.state == RunState.IDLE

    def test_start_uses_source_factory(self, make_controller, clock, recorder):
        controller = make_controller(source_factory=lambda: iter([1, 2]))
        controller.set_speed(0)
        controller.start()
        clock.run_pending()
        controller.start()
        clock.run_pending()
        assert step_tuples(recorder) == [(1, 0, False), (2, 1, True)]

    def test_pause_is_idempotent(self, controller):
        controller.start(numbers(3))
        assert controller.pause()
        assert not controller.pause()
        assert controller.state == RunState.PAUSED

    def test_resume_is_idempotent(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        controller.pause()
        assert controller.resume()
        assert not controller.resume()
        clock.run_pending()
        assert len(recorder.steps) == 2

    def test_resume_pulls_immediately(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        controller.pause()
        clock.advance(10_000)
        assert len(recorder.steps) == 1
        controller.resume()
        clock.run_pending()
        assert len(recorder.steps) == 2

    def test_pause_from_idle_is_rejected(self, controller, recorder):
        assert not controller.pause()
        assert controller.state == RunState.IDLE
        assert recorder.events == []

    def test_step_while_running_is_rejected(self, controller):
        controller.start(numbers(3))
        assert not controller.step()
        assert controller.state == RunState.RUNNING

    def test_step_after_completion_is_rejected(self, controller, recorder):
        controller.step(["only"])
        assert controller.state == RunState.COMPLETED
        assert not controller.step()
        assert len(recorder.steps) == 1

    def test_restart_after_completion(self, controller, clock, recorder):
        controller.set_speed(0)
        controller.start([1])
        clock.run_pending()
        first = controller.run_handle
        assert controller.start([2])
        clock.run_pending()
        assert controller.run_handle != first
        assert step_tuples(recorder) == [(2, 0, True)]

    def test_empty_source_completes_without_steps(self, controller, clock, recorder):
        controller.start([])
        clock.run_pending()
        assert controller.state == RunState.COMPLETED
        assert recorder.steps == []
        assert recorder.kinds() == ["started", "completed"]


class TestCancelAndReset:
    def test_cancel_returns_to_idle(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        assert controller.cancel()
        assert controller.state == RunState.IDLE
        assert controller.run_handle is None
        assert recorder.kinds()[-1] == "cancelled"

        clock.advance(10_000)
        assert len(recorder.steps) == 1

    def test_cancel_from_idle_is_silent(self, controller, recorder):
        assert controller.cancel()
        assert recorder.events == []

    def test_cancel_disposes_the_source(self, controller, clock):
        closed = []

        def source():
            try:
                yield from range(10)
            finally:
                closed.append(True)

        controller.start(source())
        clock.run_pending()
        controller.cancel()
        assert closed == [True]

    def test_reset_clears_counters(self, controller, clock):
        controller.set_speed(0)
        controller.start(numbers(3))
        clock.run_pending()
        assert controller.stats()["runs_completed"] == 1

        controller.reset()
        assert controller.stats() == {
            "steps_emitted": 0,
            "runs_started": 0,
            "runs_completed": 0,
            "runs_failed": 0,
        }
        assert controller.last_step is None

    def test_reset_is_idempotent(self, controller, recorder):
        assert controller.reset()
        assert controller.reset()
        assert controller.state == RunState.IDLE
        assert recorder.kinds() == ["reset", "reset"]

    def test_stale_timer_is_dropped(self, controller, clock, recorder):
        controller.start(numbers(5))
        clock.run_pending()
        controller.reset()
        controller.step(["fresh", "run"])
        clock.advance(10_000)
        assert [s.value for s in recorder.steps] == ["fresh"]
        assert controller.state == RunState.PAUSED


class TestRejectionEvents:
    def test_rejected_event_when_enabled(self, clock, recorder):
        config = PlaybackConfig.from_dict({"events": {"warn_on_invalid": True}})
        controller = PlaybackController(clock=clock, config=config, renderers=[recorder])
        assert not controller.resume()
        [event] = recorder.events
        assert event.kind == LifecycleKind.REJECTED
        assert isinstance(event.error, InvalidTransition)
        assert event.error.details["command"] == "resume"

    def test_no_rejected_event_by_default(self, controller, recorder):
        controller.resume()
        assert recorder.events == []

    def test_rejection_is_logged(self, controller, caplog):
        controller.start(numbers(2))
        with caplog.at_level(logging.WARNING, logger="playback.controller"):
            controller.start(numbers(2))
        assert "not allowed while running" in caplog.text


class TestRenderers:
    def test_renderer_errors_are_isolated(self, make_controller, clock, recorder):
        def explode(step, state):
            raise RuntimeError("renderer bug")

        controller = make_controller(on_step=explode)
        controller.set_speed(0)
        controller.start([1, 2])
        clock.run_pending()
        assert controller.state == RunState.COMPLETED
        assert len(recorder.steps) == 2

    def test_renderer_may_pause_from_on_step(self, make_controller, clock, recorder):
        controller = None

        def pause_on_second(step, state):
            if step.sequence == 1:
                controller.pause()

        controller = make_controller(on_step=pause_on_second)
        controller.set_speed(0)
        controller.start(numbers(5))
        clock.run_pending()
        assert controller.state == RunState.PAUSED
        assert len(recorder.steps) == 2

    def test_mutable_values_drawn_on_time_without_look_ahead(self, make_controller, clock, recorder):
        drawn = []

        def growing():
            arr = []
            for i in range(3):
                arr.append(i)
                yield arr

        controller = make_controller(on_step=lambda step, state: drawn.append(list(step.value)),
                                     lookahead=False)
        controller.set_speed(0)
        controller.start(growing())
        clock.run_pending()
        assert drawn == [[0], [0, 1], [0, 1, 2]]
        assert controller.state == RunState.COMPLETED
        assert recorder.kinds() == ["started", "completed"]

    def test_subscribe_and_unsubscribe(self, controller, clock):
        extra = RunRecorder()
        controller.subscribe(extra)
        controller.subscribe(extra)
        controller.step([1, 2])
        controller.unsubscribe(extra)
        controller.step()
        assert len(extra.steps) == 1

    def test_step_state_is_reported(self, controller, recorder):
        controller.step([1, 2])
        controller.step()
        assert recorder.state == RunState.COMPLETED
        assert recorder.log[1]["state"] == "paused"


class TestSnapshot:
    def test_snapshot_tracks_progress(self, controller, clock):
        controller.start(numbers(3))
        clock.run_pending()
        snap = controller.snapshot()
        assert snap.is_playing
        assert snap.steps_emitted == 1
        assert snap.last_step.value == 0
        assert snap.speed_ms == 100

    def test_snapshot_after_failure(self, controller, clock):
        controller.step(failing_after([], ValueError("nope")))
        snap = controller.snapshot()
        assert snap.is_finished
        assert "ValueError" in snap.error
        assert controller.stats()["runs_failed"] == 1


class TestAsyncSources:
    def test_async_source_on_asyncio_clock(self, config):
        async def source():
            for v in range(3):
                await asyncio.sleep(0)
                yield v

        async def scenario():
            recorder = RunRecorder()
            controller = PlaybackController(
                clock=AsyncioClock(), config=config, renderers=[recorder],
            )
            controller.set_speed(0)
            controller.start(source())
            for _ in range(100):
                await asyncio.sleep(0.001)
                if controller.state == RunState.COMPLETED:
                    break
            return controller, recorder

        controller, recorder = asyncio.run(scenario())
        assert controller.state == RunState.COMPLETED
        assert step_tuples(recorder) == [(0, 0, False), (1, 1, False), (2, 2, True)]

    def test_async_result_during_pause_is_kept(self, config):
        async def source():
            for v in ("a", "b", "c"):
                await asyncio.sleep(0.01)
                yield v

        async def scenario():
            recorder = RunRecorder()
            controller = PlaybackController(
                clock=AsyncioClock(), config=config, renderers=[recorder],
            )
            controller.start(source())
            await asyncio.sleep(0.002)      # first pull is in flight
            controller.pause()
            await asyncio.sleep(0.05)
            paused_steps = len(recorder.steps)
            controller.step()
            return controller, recorder, paused_steps

        controller, recorder, paused_steps = asyncio.run(scenario())
        assert paused_steps == 0
        assert [s.value for s in recorder.steps] == ["a"]
        assert controller.state == RunState.PAUSED

    def test_async_source_without_event_loop_fails_the_run(self, controller, clock):
        async def source():
            yield 1

        controller.start(source())
        clock.run_pending()
        assert controller.state == RunState.FAILED
        assert isinstance(controller.error, StepSourceError)
