from __future__ import annotations

import logging
from typing import Any

import pytest
from conftest import FakeActivityBackend, ManualClock

from pyuseractivity import (
    USER_ACTIVITY_UPDATED,
    ActivityDescriptor,
    LocalMessageBus,
    UserActivityConfig,
    UserActivityService,
    UserActivityStateError,
    UserActivityTransportError,
)

ELEMENT = "/path/to/workspace/element.ext"
URL = "http://localhost:9080/user-activity"


def _service(
    config: UserActivityConfig, bus: LocalMessageBus, backend: FakeActivityBackend, clock: ManualClock
) -> UserActivityService:
    return UserActivityService(config, bus, transport=backend, scheduler=clock)


@pytest.mark.asyncio
async def test_signal_triggers_exactly_one_poll(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="user.activity.event", element_key="path", activity_type="sampleType"))

        bus.publish("user.activity.event", {"path": ELEMENT})
        clock.advance(0)
        await settle()

        assert backend.calls == [(URL, [{"element": ELEMENT, "activities": ["sampleType"]}])]
        await service.stop()


@pytest.mark.asyncio
async def test_no_poll_before_first_signal(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))

        clock.advance(60)
        await settle()

        assert backend.calls == []
        await service.stop()


@pytest.mark.asyncio
async def test_grouped_activations_replace_each_other(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(
            ActivityDescriptor(name="first", element_key="path", activity_type="t1", group="g"),
            ActivityDescriptor(name="second", element_key="path", activity_type="t2", group="g"),
        )

        bus.publish("first", {"path": "/e"})
        clock.advance(0)
        bus.publish("second", {"path": "/e"})
        clock.advance(0)
        await settle()

        assert backend.bodies == [
            [{"element": "/e", "activities": ["t1"]}],
            [{"element": "/e", "activities": ["t2"]}],
        ]
        await service.stop()


@pytest.mark.asyncio
async def test_ungrouped_activations_accumulate(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(
            ActivityDescriptor(name="user.activity.event", element_key="path", activity_type="firstType"),
            ActivityDescriptor(name="different.user.activity.event", element_key="path", activity_type="differentType"),
        )

        bus.publish("user.activity.event", {"path": ELEMENT})
        clock.advance(0)
        bus.publish("different.user.activity.event", {"path": ELEMENT})
        clock.advance(0)
        await settle()

        assert backend.bodies == [
            [{"element": ELEMENT, "activities": ["firstType"]}],
            [{"element": ELEMENT, "activities": ["firstType", "differentType"]}],
        ]
        await service.stop()


@pytest.mark.asyncio
async def test_activity_expires_after_timeout(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t", timeout=7))

        bus.publish("sig", {"path": "/e"})
        clock.advance(6)
        await settle()
        assert backend.bodies[-1] == [{"element": "/e", "activities": ["t"]}]

        clock.advance(4)
        await settle()
        assert backend.bodies[-1] == []
        await service.stop()


@pytest.mark.asyncio
async def test_transitions_toggle_between_polls(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(
            ActivityDescriptor(
                name="toggle",
                element_key="path",
                activity_type=[{"to": "t1"}, {"from": "t1", "to": "t2"}, {"from": "t2", "to": "t1"}],
            )
        )

        for _ in range(3):
            bus.publish("toggle", {"path": "/e"})
            clock.advance(0)
        await settle()

        assert backend.bodies == [
            [{"element": "/e", "activities": ["t1"]}],
            [{"element": "/e", "activities": ["t2"]}],
            [{"element": "/e", "activities": ["t1"]}],
        ]
        await service.stop()


@pytest.mark.asyncio
async def test_stop_sends_single_empty_sign_off_poll(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(
            ActivityDescriptor(name="a", element_key="path", activity_type="t1"),
            ActivityDescriptor(name="b", element_key="path", activity_type="t2"),
        )
        bus.publish("a", {"path": "/one"})
        bus.publish("b", {"path": "/two"})
        clock.advance(0)
        await settle()
        before = len(backend.calls)

        await service.stop()
        await settle()

        assert len(backend.calls) == before + 1
        assert backend.bodies[-1] == []
        assert not service.running

        # Nothing reacts after sign-off.
        bus.publish("a", {"path": "/one"})
        clock.advance(60)
        await settle()
        assert len(backend.calls) == before + 1
        assert clock.pending == []


@pytest.mark.asyncio
async def test_stop_cancels_pending_poll_before_sign_off(config, bus, backend, clock, settle) -> None:
    published: list[Any] = []
    bus.subscribe(USER_ACTIVITY_UPDATED, published.append)

    def _reply(body: Any) -> Any:
        if not body:
            return []
        return [{"element": "/e", "activities": [{"user": "jane", "type": "t", "timestamp": 10}]}]

    backend.response = _reply

    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))
        bus.publish("sig", {"path": "/e"})
        clock.advance(0)  # tick fired, its poll has not run yet

        await service.stop()
        await settle()

    assert backend.bodies == [[]]
    assert published == [[]]


@pytest.mark.asyncio
async def test_polling_cadence_resets_on_signal(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))

        async def _advance(seconds: float) -> int:
            clock.advance(seconds)
            await settle()
            return len(backend.calls)

        bus.publish("sig", {"path": "/e"})
        assert await _advance(0) == 1
        assert await _advance(4) == 1
        assert await _advance(1) == 2  # t=5
        assert await _advance(5) == 3  # t=10

        assert await _advance(2) == 3
        bus.publish("sig", {"path": "/e"})  # t=12
        assert await _advance(0) == 4
        assert await _advance(4) == 4  # the tick due at t=15 was superseded
        assert await _advance(1) == 5  # t=17
        await service.stop()


@pytest.mark.asyncio
async def test_reply_is_broadcast_including_sign_off(config, bus, backend, clock, settle) -> None:
    published: list[Any] = []
    bus.subscribe(USER_ACTIVITY_UPDATED, published.append)
    backend.response = [
        {
            "element": "/e",
            "activities": [
                {"user": "john", "type": "t", "timestamp": 20},
                {"user": "jane", "type": "t", "timestamp": 10},
            ],
        }
    ]

    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))
        bus.publish("sig", {"path": "/e"})
        clock.advance(0)
        await settle()
        await service.stop()

    expected = [
        {
            "element": "/e",
            "activities": [
                {"user": "jane", "type": "t", "timestamp": 10},
                {"user": "john", "type": "t", "timestamp": 20},
            ],
        }
    ]
    assert published == [expected, expected]


@pytest.mark.asyncio
async def test_failed_poll_is_logged_and_polling_continues(
    config, bus, backend, clock, settle, caplog: pytest.LogCaptureFixture
) -> None:
    backend.error = UserActivityTransportError("HTTP 503 from server", status_code=503, url=URL)

    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))

        with caplog.at_level(logging.WARNING, logger="pyuseractivity.service"):
            bus.publish("sig", {"path": "/e"})
            clock.advance(0)
            await settle()

        assert "poll failed" in caplog.text

        backend.error = None
        clock.advance(5)
        await settle()
        assert len(backend.calls) == 2
        await service.stop()


@pytest.mark.asyncio
async def test_accepted_signal_logged_with_observation_time(
    config, bus, backend, clock, settle, caplog: pytest.LogCaptureFixture
) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))

        with caplog.at_level(logging.DEBUG, logger="pyuseractivity.service"):
            bus.publish("sig", {"path": "/e"})

        [record] = [r for r in caplog.records if r.getMessage().startswith("sig on /e")]
        assert record.args[-1].endswith("+00:00")
        await service.stop()


@pytest.mark.asyncio
async def test_malformed_signal_has_no_effect(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))

        bus.publish("sig", None)
        bus.publish("sig", {"other": "/e"})
        clock.advance(30)
        await settle()

        assert backend.calls == []
        assert service.snapshot() == []
        await service.stop()


@pytest.mark.asyncio
async def test_close_signs_off_when_still_running(config, bus, backend, clock, settle) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))
        bus.publish("sig", {"path": "/e"})
        clock.advance(0)
        await settle()

    assert backend.bodies[-1] == []
    assert bus.subscriber_count("sig") == 0


@pytest.mark.asyncio
async def test_start_twice_rejected(config, bus, backend, clock) -> None:
    async with _service(config, bus, backend, clock) as service:
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))
        with pytest.raises(UserActivityStateError):
            service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))
        await service.stop()


def test_start_outside_context_rejected(config, bus, backend, clock) -> None:
    service = _service(config, bus, backend, clock)

    with pytest.raises(UserActivityStateError):
        service.start(ActivityDescriptor(name="sig", element_key="path", activity_type="t"))


@pytest.mark.asyncio
async def test_stop_when_not_started_is_noop(config, bus, backend, clock) -> None:
    async with _service(config, bus, backend, clock) as service:
        await service.stop()

    assert backend.calls == []
