"""
Contact form route.
Submissions are mailed to the site owner and never stored.
"""
from fastapi import APIRouter, HTTPException, status, Request
from starlette.concurrency import run_in_threadpool
import logging

from saavi_site.schemas import ContactRequest, ContactResponse
from saavi_site.services import email_service
from saavi_site.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/contact", response_model=ContactResponse)
@limiter.limit(RATE_LIMITS["contact"])
async def submit_contact(request: Request, payload: ContactRequest):
    """
    Send a contact form submission by email.

    Raises:
        HTTPException: 400 if any field is missing or blank,
            500 if mail is not configured or the relay fails
    """
    name = (payload.name or "").strip()
    phone = (payload.phone or "").strip()
    message = (payload.message or "").strip()

    if not name or not phone or not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "All fields are required.", "message": "Name, phone and message are required."}
        )

    try:
        await run_in_threadpool(email_service.send_contact_notification, name, phone, message)
    except Exception as e:
        logger.error(f"Contact form error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to send message. Please try calling us directly.",
                "message": "Mail delivery failed"
            }
        )

    return ContactResponse(success=True, message="Message sent successfully!")
