import asyncio

import pytest

from conftest import failing_after, numbers
from playback.source import PullResult, StepSourceAdapter, declares_final


def drain(adapter):
    results = []
    while True:
        result = adapter.pull()
        results.append(result)
        if not result.has_value or result.is_final:
            return results


class TestDeclaresFinal:
    def test_attribute_and_mapping(self):
        class Marked:
            is_final = True

        assert declares_final(Marked())
        assert declares_final({"is_final": True})
        assert not declares_final({"is_final": False})
        assert not declares_final(3)

    def test_truthy_marker_that_is_not_true(self):
        class Odd:
            is_final = "yes"

        assert not declares_final(Odd())
        assert not declares_final({"is_final": "yes"})
        assert not declares_final({"is_final": 1})


class TestSyncPull:
    def test_look_ahead_marks_last_value_final(self):
        results = drain(StepSourceAdapter(numbers(3)))
        assert [r.value for r in results] == [0, 1, 2]
        assert [r.is_final for r in results] == [False, False, True]

    def test_single_value_is_final(self):
        [only] = drain(StepSourceAdapter(["x"]))
        assert only.value == "x"
        assert only.is_final

    def test_empty_source_is_exhausted(self):
        adapter = StepSourceAdapter([])
        result = adapter.pull()
        assert result.exhausted
        assert not result.has_value
        assert adapter.pull().exhausted

    def test_self_declared_final_stops_pulling(self):
        pulled = []

        def source():
            for v in [{"n": 1}, {"n": 2, "is_final": True}, {"n": 3}]:
                pulled.append(v["n"])
                yield v

        adapter = StepSourceAdapter(source())
        assert not adapter.pull().is_final
        second = adapter.pull()
        assert second.is_final
        assert second.value["n"] == 2
        assert pulled == [1, 2]
        assert adapter.pull().exhausted

    def test_error_during_look_ahead_is_held_back(self):
        boom = RuntimeError("boom")
        adapter = StepSourceAdapter(failing_after([1, 2], boom))
        first, second, third = adapter.pull(), adapter.pull(), adapter.pull()
        assert (first.value, first.is_final) == (1, False)
        assert (second.value, second.is_final) == (2, False)
        assert third.error is boom
        assert adapter.pull().exhausted

    def test_error_on_first_pull(self):
        result = StepSourceAdapter(failing_after([], ValueError("bad"))).pull()
        assert isinstance(result.error, ValueError)

    def test_callable_source_is_called(self):
        adapter = StepSourceAdapter(lambda: iter([7]))
        assert adapter.pull().value == 7

    def test_generator_function_is_called(self):
        def gen():
            yield "a"

        assert StepSourceAdapter(gen).pull().value == "a"

    def test_factory_error_surfaces_on_first_pull(self):
        def factory():
            raise ValueError("cannot build")

        result = StepSourceAdapter(factory).pull()
        assert isinstance(result.error, ValueError)

    def test_non_iterable_source(self):
        result = StepSourceAdapter(42).pull()
        assert isinstance(result.error, TypeError)

    def test_pulled_counter(self):
        adapter = StepSourceAdapter(numbers(3))
        drain(adapter)
        assert adapter.pulled == 3


class TestWithoutLookAhead:
    def test_mutable_value_is_seen_before_the_source_resumes(self):
        def growing():
            arr = []
            for i in range(3):
                arr.append(i)
                yield arr

        adapter = StepSourceAdapter(growing(), lookahead=False)
        seen = []
        while True:
            result = adapter.pull()
            if not result.has_value:
                break
            seen.append(list(result.value))
        assert seen == [[0], [0, 1], [0, 1, 2]]

    def test_look_ahead_draws_mutable_value_late(self):
        def growing():
            arr = []
            for i in range(2):
                arr.append(i)
                yield arr

        first = StepSourceAdapter(growing()).pull()
        assert first.value == [0, 1]

    def test_undeclared_last_value_is_not_final(self):
        adapter = StepSourceAdapter(numbers(2), lookahead=False)
        assert [adapter.pull().is_final, adapter.pull().is_final] == [False, False]
        assert adapter.pull().exhausted

    def test_declared_final_still_ends_the_source(self):
        adapter = StepSourceAdapter(iter([{"n": 1, "is_final": True}, {"n": 2}]), lookahead=False)
        result = adapter.pull()
        assert result.is_final and result.value["n"] == 1
        assert adapter.pull().exhausted

    def test_error_comes_on_the_pull_that_hit_it(self):
        boom = RuntimeError("boom")
        adapter = StepSourceAdapter(failing_after([1], boom), lookahead=False)
        assert adapter.pull().value == 1
        assert adapter.pull().error is boom


class TestDispose:
    def test_dispose_closes_generator_and_is_idempotent(self):
        closed = []

        def source():
            try:
                yield from range(10)
            finally:
                closed.append(True)

        adapter = StepSourceAdapter(source())
        adapter.pull()
        adapter.dispose()
        adapter.dispose()
        assert closed == [True]
        assert adapter.disposed
        assert adapter.pull().exhausted

    def test_dispose_before_any_pull(self):
        adapter = StepSourceAdapter(numbers(2))
        adapter.dispose()
        assert adapter.pull() == PullResult(exhausted=True)


class TestAsyncPull:
    def test_async_generator(self):
        async def source():
            for v in ("a", "b"):
                await asyncio.sleep(0)
                yield v

        async def scenario():
            adapter = StepSourceAdapter(source())
            assert adapter.is_async
            return [await adapter.pull(), await adapter.pull(), await adapter.pull()]

        first, second, third = asyncio.run(scenario())
        assert (first.value, first.is_final) == ("a", False)
        assert (second.value, second.is_final) == ("b", True)
        assert third.exhausted

    def test_async_error_is_reported(self):
        async def source():
            yield 1
            raise KeyError("missing")

        async def scenario():
            adapter = StepSourceAdapter(source())
            return [await adapter.pull(), await adapter.pull()]

        first, second = asyncio.run(scenario())
        assert first.value == 1 and not first.is_final
        assert isinstance(second.error, KeyError)

    def test_async_dispose_closes(self):
        closed = []

        async def source():
            try:
                yield 1
                yield 2
                yield 3
            finally:
                closed.append(True)

        async def scenario():
            adapter = StepSourceAdapter(source())
            await adapter.pull()
            adapter.dispose()
            await asyncio.sleep(0.01)

        asyncio.run(scenario())
        assert closed == [True]
