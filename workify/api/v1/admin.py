from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from workify.api.v1.deps import get_services
from workify.core.rate_limit import rate_limit
from workify.core.security import require_admin
from workify.schemas.feedback import AdminFeedbackResponse, Pagination
from workify.services.container import AppServices

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/admin/feedback", response_model=AdminFeedbackResponse)
@rate_limit()
async def list_feedback(
    request: Request,
    user_id: str | None = Query(default=None),
    min_score: int | None = Query(default=None, ge=0, le=100),
    max_score: int | None = Query(default=None, ge=0, le=100),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    services: AppServices = Depends(get_services),
):
    if min_score is not None and max_score is not None and min_score > max_score:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="min_score must not exceed max_score",
        )

    records, total = services.feedback.list_feedback(
        user_id=user_id,
        min_score=min_score,
        max_score=max_score,
        skip=skip,
        limit=limit,
    )
    return AdminFeedbackResponse(
        feedback=records,
        analytics=services.analytics.system_analytics(),
        pagination=Pagination(skip=skip, limit=limit, total=total),
    )
