from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Any, Dict, Optional
from datetime import datetime

from contact_api.core.sanitize import escape, is_email, normalize_email, trim

MAX_MESSAGE_LENGTH = 1000


def _as_text(value: Any) -> str:
    """Coerce a raw JSON value to text the way a form field would arrive"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ContactSubmission(BaseModel):
    """
    Validated and sanitized contact form input.

    Required fields default to "" so that a missing field reports the same
    message as an empty one; every field failure is collected by pydantic.
    """
    model_config = ConfigDict(extra="ignore")

    name: str = Field("", validate_default=True)
    email: str = Field("", validate_default=True)
    phone: Optional[str] = None
    topic: Optional[str] = None
    message: str = Field("", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value):
        value = trim(_as_text(value))
        if not value:
            raise PydanticCustomError("required", "Name is required")
        return escape(value)

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, value):
        value = trim(_as_text(value))
        if not is_email(value):
            raise PydanticCustomError("email", "Valid email is required")
        normalized = normalize_email(value)
        if not normalized:
            raise PydanticCustomError("email", "Valid email is required")
        return normalized

    @field_validator("phone", "topic", mode="before")
    @classmethod
    def clean_optional(cls, value):
        if value is None:
            return None
        return escape(trim(_as_text(value)))

    @field_validator("message", mode="before")
    @classmethod
    def clean_message(cls, value):
        value = trim(_as_text(value))
        if not value:
            raise PydanticCustomError("required", "Message is required")
        if len(value) > MAX_MESSAGE_LENGTH:
            raise PydanticCustomError(
                "max_length",
                "Message can be at most {max_length} characters long",
                {"max_length": MAX_MESSAGE_LENGTH},
            )
        return escape(value)


class Contact(BaseModel):
    """A stored contact submission as read back from the `contacts` collection"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    topic: Optional[str] = None
    message: str
    submittedAt: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, value):
        # ObjectId from the driver
        return str(value)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
