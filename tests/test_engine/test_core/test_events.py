from enum import Enum, auto
from mnemonic_engine.core.events import EventBus

class MockEvent(Enum):
    TEST_EVENT = auto()
    OTHER_EVENT = auto()

def test_event_bus_subscribe_publish(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append)

    event_bus.publish(MockEvent.TEST_EVENT, {"data": "test"})

    assert received == [{"data": "test"}]

def test_handlers_run_in_subscription_order(event_bus):
    order = []
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda payload: order.append("first"))
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda payload: order.append("second"))

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first", "second"]

def test_event_bus_unsubscribe(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append)
    event_bus.unsubscribe(MockEvent.TEST_EVENT, received.append)
    # Unknown handlers and types are ignored
    event_bus.unsubscribe(MockEvent.OTHER_EVENT, received.append)

    event_bus.publish(MockEvent.TEST_EVENT, 1)

    assert received == []

def test_subscribe_many(event_bus):
    received = []
    event_bus.subscribe_many(MockEvent, received.append)

    event_bus.publish(MockEvent.TEST_EVENT, 1)
    event_bus.publish(MockEvent.OTHER_EVENT, 2)

    assert received == [1, 2]

def test_failing_handler_does_not_stop_dispatch(event_bus):
    received = []

    def broken(payload):
        raise RuntimeError("boom")

    event_bus.subscribe(MockEvent.TEST_EVENT, broken)
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append)

    event_bus.publish(MockEvent.TEST_EVENT, 2)

    assert received == [2]

def test_publish_during_dispatch_is_queued(event_bus):
    order = []

    def first(payload):
        order.append("started")
        event_bus.publish(MockEvent.OTHER_EVENT)
        order.append("started-done")

    event_bus.subscribe(MockEvent.TEST_EVENT, first)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda payload: order.append("other"))

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["started", "started-done", "other"]

def test_handler_may_unsubscribe_itself(event_bus):
    received = []

    def once(payload):
        received.append(payload)
        event_bus.unsubscribe(MockEvent.TEST_EVENT, once)

    event_bus.subscribe(MockEvent.TEST_EVENT, once)
    event_bus.publish(MockEvent.TEST_EVENT, 1)
    event_bus.publish(MockEvent.TEST_EVENT, 2)

    assert received == [1]

def test_clear_handlers(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append)
    event_bus.subscribe(MockEvent.OTHER_EVENT, received.append)

    event_bus.clear(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT, 1)
    event_bus.publish(MockEvent.OTHER_EVENT, 2)
    assert received == [2]

    event_bus.clear()
    event_bus.publish(MockEvent.OTHER_EVENT, 3)
    assert received == [2]

def test_publish_without_subscribers(event_bus):
    event_bus.publish(MockEvent.TEST_EVENT, "ignored")
