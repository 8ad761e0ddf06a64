import asyncio
from datetime import datetime, timezone

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from contact_api.core.exceptions import StorageError
from contact_api.db.contact_store import ContactStore
from contact_api.models.contact import ContactSubmission


def submission(**overrides):
    fields = {"name": "Ann", "email": "ann@example.com", "message": "Hello"}
    fields.update(overrides)
    return ContactSubmission.model_validate(fields)


def test_create_assigns_id_and_timestamp(collection):
    store = ContactStore(collection)

    contact = asyncio.run(store.create(submission()))

    assert contact.id == str(collection.documents[0]["_id"])
    assert contact.submittedAt.tzinfo is not None
    assert "phone" not in collection.documents[0]


def test_create_keeps_given_timestamp(collection):
    store = ContactStore(collection)
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    contact = asyncio.run(store.create(submission(), submitted_at=when))

    assert contact.submittedAt == when
    assert contact.to_json()["submittedAt"].startswith("2024-05-01T12:00:00")


def test_create_wraps_driver_errors(collection):
    collection.error = DuplicateKeyError("E11000 duplicate key")
    store = ContactStore(collection)

    with pytest.raises(StorageError, match="duplicate key"):
        asyncio.run(store.create(submission()))


def test_list_all_returns_stored_records(collection):
    store = ContactStore(collection)
    asyncio.run(store.create(submission(name="Ann")))
    asyncio.run(store.create(submission(name="Ben", topic="Sales")))

    contacts = asyncio.run(store.list_all())

    assert [c.name for c in contacts] == ["Ann", "Ben"]
    assert contacts[1].topic == "Sales"
    assert "topic" not in contacts[0].to_json()


def test_list_all_wraps_driver_errors(collection):
    collection.error = AutoReconnect("connection reset")

    with pytest.raises(StorageError):
        asyncio.run(ContactStore(collection).list_all())
