from fastapi import APIRouter, Depends, HTTPException, Request, status

from workify.api.v1.deps import get_services
from workify.core.rate_limit import rate_limit
from workify.core.security import current_user_id
from workify.schemas.profile import Intent, IntentUpsertRequest, ProfileResponse, ProfileUpsertRequest
from workify.services.container import AppServices

router = APIRouter()


@router.put("/profile", response_model=ProfileResponse)
@rate_limit()
async def save_profile(
    request: Request,
    payload: ProfileUpsertRequest,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    return services.profiles.save_resume(user_id, payload.resume_text)


@router.get("/profile", response_model=ProfileResponse)
@rate_limit()
async def get_profile(
    request: Request,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    profile = services.profiles.get_resume(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found")
    return profile


@router.put("/intent", response_model=Intent)
@rate_limit()
async def save_intent(
    request: Request,
    payload: IntentUpsertRequest,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    return services.profiles.save_intent(user_id, payload.to_intent())


@router.get("/intent", response_model=Intent)
@rate_limit()
async def get_intent(
    request: Request,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    intent = services.profiles.get_intent(user_id)
    if intent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Intent not found")
    return intent
