from typing import List

from samplefinder.search.channels import EventChannel, StateChannel


def test_state_channel_skips_unchanged_values() -> None:
    channel: StateChannel[List[int]] = StateChannel([])
    seen: List[List[int]] = []
    channel.subscribe(seen.append)

    assert channel.publish([1, 2]) is True
    assert channel.publish([1, 2]) is False
    assert channel.publish([]) is True
    assert seen == [[1, 2], []]
    assert channel.publish_count == 2


def test_state_channel_key_projection() -> None:
    channel: StateChannel[List[str]] = StateChannel([], key=lambda v: [s.lower() for s in v])
    assert channel.publish(["A"]) is True
    assert channel.publish(["a"]) is False
    assert channel.value == ["A"]


def test_unsubscribe_and_failing_subscriber() -> None:
    channel: StateChannel[int] = StateChannel(0)
    seen: List[int] = []

    def broken(_: int) -> None:
        raise RuntimeError("boom")

    channel.subscribe(broken)
    unsubscribe = channel.subscribe(seen.append)
    channel.publish(1)
    unsubscribe()
    unsubscribe()
    channel.publish(2)
    assert seen == [1]
    assert channel.value == 2


def test_event_channel_delivers_every_event() -> None:
    channel: EventChannel[str] = EventChannel()
    seen: List[str] = []
    channel.subscribe(seen.append)
    channel.emit("x")
    channel.emit("x")
    assert seen == ["x", "x"]
