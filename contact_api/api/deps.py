"""Request-scoped access to the process-wide resources kept on app.state."""

from fastapi import Request

from contact_api.core.exceptions import StorageError
from contact_api.core.mailer import Mailer
from contact_api.db.contact_store import ContactStore


def get_contact_store(request: Request) -> ContactStore:
    store = getattr(request.app.state, "contact_store", None)
    if store is None:
        raise StorageError("Database connection is not initialized")
    return store


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
