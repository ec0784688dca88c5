"""Tests for recording services."""

import asyncio
from unittest.mock import MagicMock

import pytest

from flowrecorder.adapters import InMemoryCaptureProvider
from flowrecorder.domains.recording.errors import (
    AlreadyRecordingError,
    NoActiveSessionError,
    ProviderStartFailedError,
)
from flowrecorder.domains.recording.events import (
    RecorderErrorOccurred,
    RecordingStarted,
    RecordingStopped,
    StepRecorded,
)
from flowrecorder.domains.recording.services import (
    CaptureProviderProtocol,
    EventCollector,
    ListenerRegistry,
    SessionController,
    StepCollector,
)
from flowrecorder.domains.recording.value_objects import PollInterval

FAST = PollInterval(10)


async def _ticks(n: int = 3) -> None:
    await asyncio.sleep(FAST.seconds * n + 0.02)


# ---------------------------------------------------------------------------
# EventCollector
# ---------------------------------------------------------------------------


class TestEventCollector:
    def test_publish_stores_event(self):
        ec = EventCollector()
        ec.publish(MagicMock())
        assert len(ec.events) == 1

    def test_max_events_evicts_oldest(self):
        ec = EventCollector(max_events=3)
        for i in range(5):
            ec.publish(f"event_{i}")
        assert ec.events == ["event_2", "event_3", "event_4"]

    def test_of_type(self):
        ec = EventCollector()
        ec.publish(RecordingStarted(session_id="s"))
        ec.publish("noise")
        assert len(ec.of_type(RecordingStarted)) == 1


# ---------------------------------------------------------------------------
# ListenerRegistry
# ---------------------------------------------------------------------------


class TestListenerRegistry:
    def test_typed_listener_only_sees_its_type(self):
        registry = ListenerRegistry()
        seen = []
        registry.subscribe(seen.append, RecordingStarted)
        registry.publish(RecordingStarted(session_id="s"))
        registry.publish(RecordingStopped(session_id="s", step_count=0))
        assert [type(e) for e in seen] == [RecordingStarted]

    def test_wildcard_listener_sees_everything(self):
        registry = ListenerRegistry()
        seen = []
        registry.subscribe(seen.append)
        registry.publish(RecordingStarted(session_id="s"))
        registry.publish(RecordingStopped(session_id="s", step_count=0))
        assert len(seen) == 2

    def test_unsubscribe_handle(self):
        registry = ListenerRegistry()
        seen = []
        unsubscribe = registry.subscribe(seen.append, RecordingStarted)
        assert registry.listener_count(RecordingStarted) == 1
        unsubscribe()
        unsubscribe()
        registry.publish(RecordingStarted(session_id="s"))
        assert seen == []
        assert registry.listener_count(RecordingStarted) == 0

    def test_unsubscribe_unknown_type_leaves_registry_untouched(self):
        registry = ListenerRegistry()
        registry.unsubscribe(print, RecordingStopped)
        registry.unsubscribe(print)
        assert RecordingStopped not in registry._listeners
        assert None not in registry._listeners

    def test_failing_listener_does_not_block_others(self, caplog):
        registry = ListenerRegistry()
        seen = []
        registry.subscribe(MagicMock(side_effect=RuntimeError("bad listener")))
        registry.subscribe(seen.append)
        registry.publish(RecordingStarted(session_id="s"))
        assert len(seen) == 1
        assert "failed for RecordingStarted" in caplog.text


# ---------------------------------------------------------------------------
# StepCollector
# ---------------------------------------------------------------------------


class TestStepCollectorDrain:
    def test_drain_delivers_each_step_once_in_order(self, provider, make_step):
        events = EventCollector()
        collector = StepCollector(provider, event_publisher=events, interval=FAST)
        a, b, c = make_step(), make_step(), make_step()

        provider.push(a)
        assert collector.drain() == [a]
        provider.push(b, c)
        assert collector.drain() == [b, c]
        assert collector.drain() == []

        recorded = events.of_type(StepRecorded)
        assert [e.step for e in recorded] == [a, b, c]
        assert [e.index for e in recorded] == [0, 1, 2]
        assert collector.delivered_count == 3

    def test_drain_failure_publishes_error(self, make_step):
        provider = InMemoryCaptureProvider([make_step()], fail_reads=1)
        events = EventCollector()
        collector = StepCollector(provider, event_publisher=events)

        assert collector.drain() == []
        errors = events.of_type(RecorderErrorOccurred)
        assert len(errors) == 1
        assert errors[0].reason == "provider_poll_failed"
        assert "simulated capture read failure" in errors[0].message
        assert collector.delivered_count == 0

        assert len(collector.drain()) == 1

    def test_drain_with_shrunk_log_delivers_nothing(self, provider, make_step, caplog):
        collector = StepCollector(provider)
        provider.push(make_step(), make_step())
        collector.drain()
        provider.clear_steps()
        assert collector.drain() == []
        assert collector.delivered_count == 2
        assert "shrank" in caplog.text

    def test_drain_without_publisher(self, provider, make_step):
        collector = StepCollector(provider)
        provider.push(make_step())
        assert len(collector.drain()) == 1

    def test_reset(self, provider, make_step):
        collector = StepCollector(provider)
        provider.push(make_step())
        collector.drain()
        collector.reset()
        assert collector.delivered_count == 0


class TestStepCollectorLoop:
    @pytest.mark.asyncio
    async def test_poll_loop_delivers_steps(self, provider, make_step):
        events = EventCollector()
        collector = StepCollector(provider, event_publisher=events, interval=FAST)
        collector.start("s1")
        try:
            provider.push(make_step(), make_step())
            await _ticks()
        finally:
            await collector.stop()
        recorded = events.of_type(StepRecorded)
        assert len(recorded) == 2
        assert all(e.session_id == "s1" for e in recorded)

    @pytest.mark.asyncio
    async def test_loop_survives_failed_ticks(self, make_step):
        provider = InMemoryCaptureProvider([make_step()], fail_reads=2)
        events = EventCollector()
        collector = StepCollector(provider, event_publisher=events, interval=FAST)
        collector.start("s1")
        try:
            await _ticks(10)
        finally:
            await collector.stop()
        assert len(events.of_type(RecorderErrorOccurred)) == 2
        assert len(events.of_type(StepRecorded)) == 1

    @pytest.mark.asyncio
    async def test_no_tick_after_stop(self, provider):
        collector = StepCollector(provider, interval=FAST)
        collector.start()
        await _ticks(2)
        await collector.stop()
        reads = provider.calls.count("get_recorded_steps")
        await _ticks(3)
        assert provider.calls.count("get_recorded_steps") == reads
        assert collector.is_polling is False

    @pytest.mark.asyncio
    async def test_double_start_rejected(self, provider):
        collector = StepCollector(provider, interval=FAST)
        collector.start()
        try:
            with pytest.raises(RuntimeError, match="already polling"):
                collector.start()
        finally:
            await collector.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, provider):
        await StepCollector(provider).stop()


# ---------------------------------------------------------------------------
# SessionController
# ---------------------------------------------------------------------------


class TestSessionControllerStart:
    @pytest.mark.asyncio
    async def test_start_publishes_event(self, provider):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events, poll_interval=FAST)
        await controller.start("s1")
        try:
            assert controller.current_session_id == "s1"
            assert controller.is_recording()
            assert controller.collector.is_polling
            assert provider.session_id == "s1"
            assert [e.session_id for e in events.of_type(RecordingStarted)] == ["s1"]
        finally:
            await controller.stop()

    @pytest.mark.asyncio
    async def test_second_start_rejected_without_side_effects(self, provider):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events, poll_interval=FAST)
        await controller.start("first")
        try:
            with pytest.raises(AlreadyRecordingError) as exc_info:
                await controller.start("second")
            assert exc_info.value.active_session_id == "first"
            assert "already in progress" in exc_info.value.message
            assert controller.current_session_id == "first"
            assert provider.calls.count("start_recording") == 1
            assert len(events.of_type(RecordingStarted)) == 1
        finally:
            await controller.stop()

    @pytest.mark.asyncio
    async def test_provider_refusal(self):
        provider = InMemoryCaptureProvider(refuse_start=True)
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events)
        with pytest.raises(ProviderStartFailedError):
            await controller.start("s1")
        assert controller.has_session is False
        assert controller.collector.is_polling is False
        assert events.events == []

    @pytest.mark.asyncio
    async def test_empty_session_id(self, provider):
        controller = SessionController(provider)
        with pytest.raises(ValueError):
            await controller.start("")
        assert provider.calls == []


class TestSessionControllerStop:
    @pytest.mark.asyncio
    async def test_stop_without_session(self, provider):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events)
        with pytest.raises(NoActiveSessionError, match="No recording session is active"):
            await controller.stop()
        assert provider.calls == []
        assert events.events == []

    @pytest.mark.asyncio
    async def test_stop_call_order(self, provider, make_step):
        controller = SessionController(provider, poll_interval=FAST)
        await controller.start("s1")
        provider.push(make_step())
        await controller.stop()
        tail = [c for c in provider.calls if c != "get_recorded_steps"]
        assert tail == ["start_recording", "stop_recording", "clear_steps"]
        last_read = len(provider.calls) - 1 - provider.calls[::-1].index(
            "get_recorded_steps"
        )
        assert provider.calls.index("stop_recording") < last_read
        assert last_read < provider.calls.index("clear_steps")

    @pytest.mark.asyncio
    async def test_stop_returns_all_steps_without_ticks(self, provider, make_step):
        controller = SessionController(provider, poll_interval=PollInterval(5000))
        await controller.start("s1")
        steps = [make_step(), make_step(), make_step()]
        provider.push(*steps)
        assert await controller.stop() == steps

    @pytest.mark.asyncio
    async def test_stop_returns_steps_already_streamed(self, provider, make_step):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events, poll_interval=FAST)
        await controller.start("s1")
        provider.push(make_step(), make_step())
        await _ticks()
        result = await controller.stop()
        assert len(result) == 2
        assert len(events.of_type(StepRecorded)) == 2

    @pytest.mark.asyncio
    async def test_stop_resets_state(self, provider, make_step):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events, poll_interval=FAST)
        await controller.start("s1")
        provider.push(make_step())
        await _ticks()
        await controller.stop()

        assert controller.has_session is False
        assert controller.is_recording() is False
        assert controller.collector.delivered_count == 0
        assert controller.collector.is_polling is False
        stopped = events.of_type(RecordingStopped)
        assert len(stopped) == 1
        assert stopped[0].session_id == "s1"
        assert stopped[0].step_count == 1

    @pytest.mark.asyncio
    async def test_restart_does_not_leak_previous_steps(self, provider, make_step):
        events = EventCollector()
        controller = SessionController(provider, event_publisher=events, poll_interval=FAST)
        await controller.start("first")
        provider.push(make_step(session_id="first"))
        await controller.stop()

        await controller.start("second")
        second = make_step(session_id="second")
        provider.push(second)
        await _ticks()
        assert await controller.stop() == [second]
        second_events = [e for e in events.of_type(StepRecorded) if e.session_id == "second"]
        assert [e.step for e in second_events] == [second]
        assert second_events[0].index == 0

    @pytest.mark.asyncio
    async def test_second_stop_raises(self, provider):
        controller = SessionController(provider, poll_interval=FAST)
        await controller.start("s1")
        await controller.stop()
        with pytest.raises(NoActiveSessionError):
            await controller.stop()

    @pytest.mark.asyncio
    async def test_failed_final_read_keeps_session(self, provider, make_step):
        controller = SessionController(provider, poll_interval=PollInterval(5000))
        await controller.start("s1")
        provider.push(make_step())
        provider.fail_reads = 1
        with pytest.raises(RuntimeError, match="simulated"):
            await controller.stop()
        assert controller.current_session_id == "s1"
        assert "clear_steps" not in provider.calls

        assert len(await controller.stop()) == 1

    @pytest.mark.asyncio
    async def test_clear_failure_still_returns_steps(self, make_step, caplog):
        provider = MagicMock(spec=CaptureProviderProtocol)
        provider.start_recording.return_value = True
        provider.stop_recording.return_value = True
        provider.get_recorded_steps.return_value = [make_step()]
        provider.clear_steps.side_effect = RuntimeError("clear failed")
        controller = SessionController(provider, poll_interval=PollInterval(5000))
        await controller.start("s1")
        assert len(await controller.stop()) == 1
        assert "Clearing the capture buffer failed" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_stops(self, provider):
        controller = SessionController(provider, poll_interval=FAST)
        await controller.start("s1")
        results = await asyncio.gather(
            controller.stop(), controller.stop(), return_exceptions=True
        )
        assert sum(isinstance(r, NoActiveSessionError) for r in results) == 1
        assert sum(isinstance(r, list) for r in results) == 1


class TestSessionControllerStatus:
    @pytest.mark.asyncio
    async def test_to_dict(self, provider):
        controller = SessionController(provider, poll_interval=FAST)
        assert controller.to_dict()["session"] is None
        await controller.start("s1")
        try:
            data = controller.to_dict()
            assert data["session"]["session_id"] == "s1"
            assert data["is_recording"] is True
            assert data["collector"]["interval_ms"] == 10
            assert data["collector"]["polling"] is True
        finally:
            await controller.stop()
