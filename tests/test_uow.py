"""
Unit of work and change bus tests.
"""

import threading

import pytest

from starlookup.app.bus import ChangeBus, ChangeNotification
from starlookup.core.errors import StoreError

from tests.models import Message


@pytest.fixture
def notifications(store):
    received = []
    store.bus.subscribe(received.append)
    return received


class TestUnitOfWork:

    def test_commit_publishes_one_notification(self, store, notifications):
        first, second = Message(id="a"), Message(id="b")
        with store.unit_of_work() as uow:
            uow.insert(first)
            uow.insert(second)

        assert len(notifications) == 1
        assert notifications[0].inserted == [first, second]
        assert store.count(Message) == 2

    def test_empty_commit_publishes_nothing(self, store, notifications):
        with store.unit_of_work():
            pass
        assert notifications == []

    def test_update_of_inserted_record_is_an_insert(self, store, notifications):
        record = Message(id="a")
        with store.unit_of_work() as uow:
            uow.insert(record)
            uow.update(record, text="draft")
        assert notifications[0].inserted == [record]
        assert notifications[0].updated == []

    def test_rollback_restores_attributes(self, store, message, notifications):
        uow = store.unit_of_work()
        uow.update(message, text="first", channel_id="c2")
        uow.update(message, text="second")
        uow.rollback()

        assert message.text == "hello"
        assert message.channel_id == "c1"
        assert not uow.has_changes
        assert notifications == []

    def test_exception_rolls_back(self, store, message, notifications):
        with pytest.raises(RuntimeError):
            with store.unit_of_work() as uow:
                uow.update(message, text="edited")
                raise RuntimeError("abort")
        assert message.text == "hello"
        assert notifications == []

    def test_failed_commit_rolls_back(self, store, notifications):
        stray = Message(id="stray")
        with pytest.raises(StoreError):
            with store.unit_of_work() as uow:
                uow.update(stray, text="edited")
        assert stray.text == ""
        assert notifications == []

    def test_cannot_reuse_committed(self, store):
        uow = store.unit_of_work()
        uow.insert(Message(id="a"))
        uow.commit()
        with pytest.raises(StoreError):
            uow.insert(Message(id="b"))
        with pytest.raises(StoreError):
            uow.commit()

    def test_notification_contents(self, store, message):
        uow = store.unit_of_work()
        uow.refresh(message)
        uow.refresh(message)
        uow.delete(message)
        notification = uow.notification()
        assert notification.refreshed == [message]
        assert notification.deleted == [message]
        assert notification.affects(message)


class TestChangeBus:

    def test_post_then_flush(self):
        bus = ChangeBus("test")
        received = []
        bus.subscribe(received.append)

        bus.post(ChangeNotification())
        assert bus.pending_count == 1
        assert received == []

        assert bus.flush() == 1
        assert len(received) == 1
        assert bus.pending_count == 0

    def test_unsubscribe(self):
        bus = ChangeBus()
        received = []
        subscription = bus.subscribe(received.append)

        assert bus.unsubscribe(subscription)
        assert not bus.unsubscribe(subscription)
        bus.publish(ChangeNotification())
        assert received == []

    def test_failing_handler_is_isolated(self, caplog):
        bus = ChangeBus("test")
        received = []

        def broken(notification):
            raise RuntimeError("boom")

        failing = bus.subscribe(broken)
        bus.subscribe(received.append)

        with caplog.at_level("ERROR", logger="starlookup.app.bus"):
            assert bus.publish(ChangeNotification()) == 1
        assert len(received) == 1
        assert failing.errors == 1
        assert "boom" in caplog.text

    def test_reentrant_post_is_delivered_in_order(self):
        bus = ChangeBus()
        seen = []
        follow_up = ChangeNotification(refreshed=["x"])

        def handler(notification):
            seen.append(notification)
            if notification is not follow_up:
                bus.publish(follow_up)

        bus.subscribe(handler)
        first = ChangeNotification(updated=["x"])
        bus.publish(first)
        assert seen == [first, follow_up]

    def test_affects_matches_by_identity(self, message):
        twin = message.model_copy()
        notification = ChangeNotification(updated=[message], inserted=[twin])
        assert notification.affects(message)
        assert not notification.affects(twin)
        assert not ChangeNotification().affects(message)
        assert ChangeNotification().is_empty


class PausingLock:
    """RLock stand-in that parks one thread right after it releases the lock on an empty queue."""

    def __init__(self, bus):
        self._inner = threading.RLock()
        self.bus = bus
        self.pause_thread = None
        self.paused = threading.Event()
        self.resume = threading.Event()

    def __enter__(self):
        self._inner.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._inner.release()
        if threading.current_thread() is self.pause_thread and not self.bus._pending:
            self.pause_thread = None
            self.paused.set()
            self.resume.wait(timeout=5)
        return False


def test_publish_while_another_flush_winds_down():
    bus = ChangeBus("race")
    lock = PausingLock(bus)
    bus._lock = lock
    first = ChangeNotification(updated=["a"])
    second = ChangeNotification(updated=["b"])
    received = []

    def handler(notification):
        received.append(notification)
        if notification is first:
            lock.pause_thread = threading.current_thread()

    bus.subscribe(handler)
    worker = threading.Thread(target=bus.publish, args=(first,))
    worker.start()
    assert lock.paused.wait(timeout=5)

    bus.publish(second)
    lock.resume.set()
    worker.join(timeout=5)

    assert received == [first, second]
    assert bus.pending_count == 0


def test_concurrent_publishers_lose_nothing():
    bus = ChangeBus()
    received = []
    bus.subscribe(received.append)

    def publish_many():
        for _ in range(200):
            bus.publish(ChangeNotification())

    workers = [threading.Thread(target=publish_many) for _ in range(4)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=10)

    assert len(received) == 800
    assert bus.pending_count == 0
