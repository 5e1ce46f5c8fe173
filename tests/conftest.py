import pytest

from starlookup.config import LookupSettings, reset_settings, set_settings
from starlookup.persistence.memory import MemoryStore
from starlookup.persistence.sql import SQLStore

from tests.models import Attachment, Channel, Message, ReadInfo, Translation


@pytest.fixture(autouse=True)
def settings():
    """Fresh settings per test so env vars and earlier tests don't leak in."""
    current = LookupSettings()
    set_settings(current)
    yield current
    reset_settings()


@pytest.fixture
def store():
    store = MemoryStore(name="test")
    yield store
    store.close()


@pytest.fixture
def message(store):
    return store.insert(Message(id="m1", local_id=7, channel_id="c1", author_id="u1", text="hello"))


@pytest.fixture
def populated(store, message):
    """Store with one channel's worth of records."""
    with store.unit_of_work() as uow:
        uow.insert(Channel(id="c1", local_id=70, name="general"))
        uow.insert(Message(id="m2", local_id=8, channel_id="c9", author_id="u1", text="second"))
        uow.insert(Message(id="m3", local_id=9, channel_id="c8", author_id="u2", text="third"))
        uow.insert(Attachment(id="a1", message_id="x1"))
        uow.insert(Attachment(id="a2", message_id="x1"))
        uow.insert(Attachment(id="a3", profile_id="x1"))
        uow.insert(ReadInfo(id="r1", channel_id="c1", channel_local_id=70, last_read=3))
        uow.insert(Translation(id="t1", channel_id="c1", locale="en", title="General"))
        uow.insert(Translation(id="t2", channel_id="c1", locale="de", title="Allgemein"))
    return store


@pytest.fixture
def sql_store():
    store = SQLStore(url="sqlite://")
    store.create_all()
    yield store
    store.close()
