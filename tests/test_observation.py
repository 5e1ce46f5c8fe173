import threading

import pytest

from starlookup.app.bus import ChangeNotification
from starlookup.app.observation import ChangeObserver, cancel, observe
from starlookup.core.errors import ObservationError

from tests.models import Message


class Recorder:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def observer(store):
    with ChangeObserver(store) as observer:
        yield observer


def test_callback_runs_on_subscription(observer, message, recorder):
    observer.observe(message, recorder)
    assert recorder.calls == 1


def test_callback_runs_after_update(store, observer, message, recorder):
    observer.observe(message, recorder)
    store.update(message, text="edited")
    assert recorder.calls == 2
    assert message.text == "edited"


def test_callback_runs_after_refresh(store, observer, message, recorder):
    observer.observe(message, recorder)
    store.refresh(message)
    assert recorder.calls == 2


def test_callback_sees_new_state(store, observer, message):
    seen = []
    observer.observe(message, lambda: seen.append(message.text))
    store.update(message, text="edited")
    assert seen == ["hello", "edited"]


def test_unrelated_changes_are_ignored(store, observer, message, recorder):
    other = store.insert(Message(id="m9", channel_id="c1"))
    observer.observe(message, recorder)

    store.update(other, text="other")
    store.insert(Message(id="m10"))
    assert recorder.calls == 1


def test_equal_but_distinct_record_is_ignored(store, observer, message, recorder):
    twin = store.insert(message.model_copy())
    observer.observe(message, recorder)
    store.refresh(twin)
    assert recorder.calls == 1


def test_one_notification_per_commit(store, observer, message, recorder):
    observer.observe(message, recorder)
    with store.unit_of_work() as uow:
        uow.update(message, text="a")
        uow.update(message, text="b")
        uow.refresh(message)
    assert recorder.calls == 2


def test_no_callback_after_cancel(store, observer, message, recorder):
    token = observer.observe(message, recorder)
    observer.cancel(token)
    store.update(message, text="edited")
    assert recorder.calls == 1
    assert not token.active


def test_cancel_drops_queued_notifications(store, observer, message, recorder):
    token = observer.observe(message, recorder)
    store.bus.post(ChangeNotification(updated=[message]))
    token.cancel()
    store.bus.flush()
    assert recorder.calls == 1


def test_cancel_twice_is_noop(observer, message, recorder):
    token = observer.observe(message, recorder)
    observer.cancel(token)
    observer.cancel(token)
    assert observer.tokens == []


def test_cancel_all(store, observer, message, recorder):
    observer.observe(message, recorder)
    observer.observe(message, recorder)
    assert recorder.calls == 2
    assert store.bus.subscriber_count == 2

    observer.cancel_all()
    store.update(message, text="edited")
    assert recorder.calls == 2
    assert store.bus.subscriber_count == 0


def test_context_manager_cancels(store, message, recorder):
    with ChangeObserver(store) as observer:
        token = observer.observe(message, recorder)
    assert not token.active
    store.refresh(message)
    assert recorder.calls == 1


def test_failing_callback_does_not_block_others(store, observer, message, recorder):
    def broken():
        if broken.armed:
            raise RuntimeError("boom")

    broken.armed = False
    observer.observe(message, broken)
    observer.observe(message, recorder)
    broken.armed = True

    store.update(message, text="edited")
    assert recorder.calls == 2


def test_record_outside_store(store, observer, recorder):
    with pytest.raises(ObservationError):
        observer.observe(Message(id="stray"), recorder)
    assert recorder.calls == 0
    assert store.bus.subscriber_count == 0


def test_deleted_record_cannot_be_observed(store, observer, message, recorder):
    store.delete(message)
    with pytest.raises(ObservationError):
        observer.observe(message, recorder)


def test_module_functions(store, message, recorder):
    token = observe(store, message, recorder)
    assert token.deliveries == 1
    cancel(token)
    store.update(message, text="edited")
    assert recorder.calls == 1


def test_commit_from_another_thread(store, observer, message):
    delivered_on = []
    observer.observe(message, lambda: delivered_on.append(threading.current_thread()))

    worker = threading.Thread(target=store.update, args=(message,), kwargs={"text": "edited"})
    worker.start()
    worker.join(timeout=5)

    assert len(delivered_on) == 2
    assert message.text == "edited"


def test_commits_from_many_threads(store, observer, message, recorder):
    observer.observe(message, recorder)

    def refresh_many():
        for _ in range(50):
            store.refresh(message)

    workers = [threading.Thread(target=refresh_many) for _ in range(4)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=10)

    assert recorder.calls == 1 + 200
    assert store.bus.pending_count == 0
