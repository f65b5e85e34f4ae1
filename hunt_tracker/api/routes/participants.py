from fastapi import APIRouter, Depends

from hunt_tracker.core.store import get_progress_service
from hunt_tracker.schemas.progress import ProgressResponse
from hunt_tracker.services.progress_service import ProgressService

router = APIRouter(tags=["Participants"])


@router.get(
    "/participants/{registration_number}/progress",
    response_model=ProgressResponse,
)
async def get_participant_progress(
    registration_number: str,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressResponse:
    """Return a participant's progress as JSON.

    Unknown participants report zero components rather than 404.

    Raises:
        InvalidRegistrationFormatError: 400 if the number is malformed.
        StorageUnavailableError: 500 if the progress store fails.
    """
    service.validate_registration_number(registration_number)
    state = await service.get_progress(registration_number)
    return ProgressResponse.from_state(state)
