"""
Contact form endpoints.

POST /contact  - rate limit, validate, sanitize, store, then send the
                 confirmation email in the background
GET  /contact  - list every stored submission
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from pydantic import ValidationError
from typing import Any, Dict, List
import logging
import math

from contact_api.api.deps import get_contact_store, get_mailer
from contact_api.core.exceptions import StorageError
from contact_api.core.mailer import Mailer, notify_submitter
from contact_api.core.rate_limit import enforce_rate_limit
from contact_api.db.contact_store import ContactStore
from contact_api.models.contact import ContactSubmission

# Set up router
router = APIRouter(prefix="/contact", tags=["Contact"])
logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body, treating anything but a JSON object as empty"""
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _echo_value(value: Any) -> Any:
    """Raw input made safe for a strict JSON response (NaN/Infinity become text)"""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _echo_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_echo_value(v) for v in value]
    return value


def format_validation_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into the {value, msg, param, location} list"""
    return [
        {
            "value": _echo_value(error.get("input")),
            "msg": error["msg"],
            "param": str(error["loc"][0]) if error["loc"] else "",
            "location": "body",
        }
        for error in exc.errors(include_url=False)
    ]


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(enforce_rate_limit)])
async def submit_contact(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    store: ContactStore = Depends(get_contact_store),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Submit a new contact form message.

    Returns:
        201: {message, contact} with the stored record
        400: {errors: [...]} when any field fails validation
        500: {message, error} when the submission could not be stored
    """
    payload = await read_json_body(request)

    try:
        submission = ContactSubmission.model_validate(payload)
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        logger.info(f"Contact form rejected: {', '.join(e['param'] for e in errors)}")
        response.status_code = status.HTTP_400_BAD_REQUEST
        return {"errors": errors}

    try:
        contact = await store.create(submission)
    except StorageError as e:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return {"message": "Failed to submit contact form.", "error": str(e)}

    logger.info(f"Contact form stored: {contact.id}")

    # Runs after the response is sent; failures are only logged
    background_tasks.add_task(notify_submitter, mailer, contact)

    return {"message": "Contact form submitted successfully!", "contact": contact.to_json()}


@router.get("", status_code=status.HTTP_200_OK)
async def list_contacts(response: Response, store: ContactStore = Depends(get_contact_store)):
    """
    Retrieve all contact form messages.

    Returns:
        200: list of stored contacts
        500: {message, error}
    """
    try:
        contacts = await store.list_all()
    except StorageError as e:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return {"message": "Failed to retrieve contact messages.", "error": str(e)}

    return [contact.to_json() for contact in contacts]
