from fastapi import APIRouter, Depends, Request

from workify.api.v1.deps import get_services, raise_workify_error
from workify.core.errors import WorkifyError
from workify.core.rate_limit import rate_limit
from workify.core.security import current_user_id
from workify.schemas.applications import ApplicationRequest, ApplicationResponse
from workify.services.container import AppServices

router = APIRouter()


@router.post("/applications", response_model=ApplicationResponse)
@rate_limit()
async def review_tailor(
    request: Request,
    payload: ApplicationRequest,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    try:
        application_id = services.applications.review(user_id, payload.tailor_id, payload.action)
    except WorkifyError as exc:
        raise_workify_error(exc)

    if payload.action == "approve":
        return ApplicationResponse(message="Application submitted successfully", application_id=application_id)
    return ApplicationResponse(message="Tailored content rejected")
