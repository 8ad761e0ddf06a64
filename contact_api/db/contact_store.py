"""
Persistence for contact submissions.

Wraps the `contacts` collection behind two operations, create and list-all.
Every driver fault is reported as a StorageError; callers never see pymongo
exception types.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pymongo.errors import PyMongoError

from contact_api.core.exceptions import StorageError
from contact_api.models.contact import Contact, ContactSubmission

logger = logging.getLogger(__name__)

CONTACTS_COLLECTION = "contacts"


class ContactStore:
    def __init__(self, collection):
        self.collection = collection

    async def create(self, submission: ContactSubmission, submitted_at: Optional[datetime] = None) -> Contact:
        """
        Insert a validated submission.

        Args:
            submission: Sanitized form input
            submitted_at: Timestamp to record; defaults to now (UTC)

        Returns:
            Contact: The stored record including its assigned `_id`
        """
        document = submission.model_dump(exclude_none=True)
        document["submittedAt"] = submitted_at or datetime.now(timezone.utc)

        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Error saving contact form: {str(e)}")
            raise StorageError(str(e)) from e

        document["_id"] = result.inserted_id
        return Contact.model_validate(document)

    async def list_all(self) -> List[Contact]:
        """Every stored contact in the collection's natural order"""
        try:
            cursor = self.collection.find({})
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error fetching contact messages: {str(e)}")
            raise StorageError(str(e)) from e

        return [Contact.model_validate(doc) for doc in documents]
