from fastapi import APIRouter, Depends, Query, Request

from workify.api.v1.deps import get_services, raise_workify_error
from workify.core.errors import WorkifyError
from workify.core.rate_limit import ai_rate_limit, rate_limit
from workify.core.security import current_user_id
from workify.schemas.feedback import (
    FeedbackDetailResponse,
    FeedbackGenerateRequest,
    FeedbackGenerateResponse,
    UserFeedbackStats,
)
from workify.services.container import AppServices

router = APIRouter()


@router.post("/feedback/generate", response_model=FeedbackGenerateResponse)
@ai_rate_limit()
async def generate_feedback(
    request: Request,
    payload: FeedbackGenerateRequest,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    try:
        record = await services.feedback.generate_now(user_id, payload.tailor_id)
    except WorkifyError as exc:
        raise_workify_error(exc)
    return FeedbackGenerateResponse(message="Feedback generated successfully", feedback=record)


@router.get("/feedback/stats", response_model=UserFeedbackStats)
@rate_limit()
async def feedback_stats(
    request: Request,
    months: int = Query(default=3, ge=1, le=24),
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    return services.analytics.user_stats(user_id, months=months)


@router.get("/feedback/{tailor_id}", response_model=FeedbackDetailResponse)
@rate_limit()
async def get_feedback(
    request: Request,
    tailor_id: str,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    try:
        record = services.feedback.get_for_tailor(user_id, tailor_id)
    except WorkifyError as exc:
        raise_workify_error(exc)
    return FeedbackDetailResponse(feedback=record)
