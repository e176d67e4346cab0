"""Contact form router for handling website inquiries."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from helpers.request_utils import get_client_ip
from models.exceptions import MalformedPayloadException
from models.schemas import ContactResponse
from services.contact_service import ContactService, get_contact_service

router = APIRouter(prefix="/contact", tags=["contact"])


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON.

    Raises:
        MalformedPayloadException: If the body is empty or not valid JSON
    """
    try:
        return await request.json()
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        logger.warning(f"Contact request body is not valid JSON: {type(e).__name__}")
        raise MalformedPayloadException() from e


@router.post("", response_model=ContactResponse, response_model_exclude_none=True)
async def submit_contact_form(
    request: Request,
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """Submit a contact form.

    Forwards the inquiry to the info or sales mailbox depending on its type.
    No authentication required - public endpoint.
    Rate limited per client IP by the contact service.

    Args:
        request: FastAPI request object (body and client IP)
        service: Contact service (overridable in tests)

    Returns:
        ``{"ok": true}`` when the inquiry was accepted

    Raises:
        DomainException subclasses, rendered by the handlers in main.py
    """
    client_ip = get_client_ip(request)
    payload = await read_json_body(request)

    # The service blocks on the rate-limit lock and the provider call
    await run_in_threadpool(service.submit, payload, client_ip)

    return ContactResponse(ok=True)
