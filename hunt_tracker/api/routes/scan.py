"""Participant-facing pages: scan, register and progress.

Admission control applies to GET /scan only. POST /register is the second
half of a first scan and runs inside the window that scan opened, so it is
not throttled; a client posting the form directly can record several codes
in one window. This is an accepted gap.
"""

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse

from hunt_tracker.core.config import settings
from hunt_tracker.core.rate_limit import enforce_scan_admission
from hunt_tracker.core.store import get_progress_service
from hunt_tracker.services.progress_service import ProgressService
from hunt_tracker.web.pages import not_registered_page, progress_page, registration_form

router = APIRouter(tags=["Hunt"])


def _registration_cookie(request: Request) -> str | None:
    return request.cookies.get(settings.app.cookie_name) or None


@router.get(
    "/scan",
    response_class=HTMLResponse,
    dependencies=[Depends(enforce_scan_admission)],
)
async def scan(
    request: Request,
    code: str | None = Query(None, description="Component code encoded in the QR"),
    service: ProgressService = Depends(get_progress_service),
) -> HTMLResponse:
    """Landing page for a scanned QR code.

    Unknown codes are rejected before the cookie is looked at. Without a
    registration cookie the participant gets the registration form; with one,
    the scan is recorded and progress shown.

    Raises:
        InvalidCodeError: 400 if the code is not in the catalog.
        InvalidRegistrationFormatError: 400 if the cookie value is malformed.
        StorageUnavailableError: 500 if the progress store fails.
    """
    valid_code = service.validate_code(code)

    registration_number = _registration_cookie(request)
    if registration_number is None:
        return registration_form(valid_code)

    state = await service.record_scan(registration_number, valid_code)
    return progress_page(state)


@router.post("/register", response_class=HTMLResponse)
async def register(
    registration_number: str | None = Form(None, alias="registrationNumber"),
    code: str | None = Form(None),
    service: ProgressService = Depends(get_progress_service),
) -> HTMLResponse:
    """Store the registration number in a cookie and record the pending scan.

    Raises:
        InvalidRegistrationFormatError: 400 if the number is not uppercase alphanumeric.
        InvalidCodeError: 400 if the carried code is not in the catalog.
        StorageUnavailableError: 500 if the progress store fails.
    """
    registration_number = service.validate_registration_number(registration_number)
    valid_code = service.validate_code(code)

    state = await service.record_scan(registration_number, valid_code)

    response = progress_page(state)
    response.set_cookie(
        key=settings.app.cookie_name,
        value=registration_number,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.get("/progress", response_class=HTMLResponse)
async def my_progress(
    request: Request,
    service: ProgressService = Depends(get_progress_service),
) -> HTMLResponse:
    """Show the cookie holder's progress without recording a scan."""
    registration_number = _registration_cookie(request)
    if registration_number is None:
        return not_registered_page()

    service.validate_registration_number(registration_number)
    state = await service.get_progress(registration_number)
    return progress_page(state, heading="Your Progress")
