"""Tests for Observable change notification"""
from app.application.observable import Observable


def test_set_notifies_subscribers():
    obs = Observable(1)
    seen = []
    obs.subscribe(seen.append)
    obs.set(2)
    obs.set(3)
    assert seen == [2, 3]
    assert obs.value == 3


def test_equal_value_is_not_notified():
    obs = Observable([1, 2])
    seen = []
    obs.subscribe(seen.append)
    obs.set([1, 2])
    assert seen == []


def test_unsubscribe_is_idempotent():
    obs = Observable(None)
    seen = []
    unsubscribe = obs.subscribe(seen.append)
    assert obs.subscriber_count == 1
    unsubscribe()
    unsubscribe()
    obs.set("u1")
    assert seen == []
    assert obs.subscriber_count == 0


def test_failing_subscriber_does_not_block_others():
    obs = Observable(0)
    seen = []

    def boom(_):
        raise RuntimeError("boom")

    obs.subscribe(boom)
    obs.subscribe(seen.append)
    obs.set(1)
    assert seen == [1]


def test_unsubscribe_during_notification():
    obs = Observable(0)
    seen = []
    unsubscribers = []

    def once(value):
        seen.append(("once", value))
        unsubscribers[0]()

    unsubscribers.append(obs.subscribe(once))
    obs.subscribe(lambda v: seen.append(("always", v)))
    obs.set(1)
    obs.set(2)
    assert seen == [("once", 1), ("always", 1), ("always", 2)]
