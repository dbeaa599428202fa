from fastapi import APIRouter, Depends, HTTPException, Request, status

from workify.api.v1.deps import get_services, raise_workify_error
from workify.core.errors import UpstreamAIError, WorkifyError
from workify.core.rate_limit import ai_rate_limit, rate_limit
from workify.core.security import current_user_id
from workify.schemas.jobs import Job, JobCreateRequest, JobCreateResponse, ProcessJobResponse, Tailor
from workify.services.container import AppServices

router = APIRouter()

_PROCESS_MESSAGES = {
    "processed": "Job processed successfully",
    "not_a_good_fit": "Job is not a good fit",
}


@router.post("/jobs", response_model=JobCreateResponse, status_code=status.HTTP_201_CREATED)
@rate_limit()
async def create_job(
    request: Request,
    payload: JobCreateRequest,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    job = services.store.create_job(
        user_id=user_id,
        title=payload.title,
        company=payload.company,
        description=payload.description,
    )
    return JobCreateResponse(id=job.id)


@router.get("/jobs/{job_id}", response_model=Job)
@rate_limit()
async def get_job(
    request: Request,
    job_id: str,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    job = services.store.get_job(job_id, user_id=user_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


@router.post("/jobs/{job_id}/process", response_model=ProcessJobResponse)
@ai_rate_limit()
async def process_job(
    request: Request,
    job_id: str,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    try:
        result = await services.jobs.process(user_id, job_id)
    except UpstreamAIError as exc:
        raise_workify_error(exc, detail={"status": "failed", "message": str(exc)})
    except WorkifyError as exc:
        raise_workify_error(exc)

    return ProcessJobResponse(
        message=_PROCESS_MESSAGES[result.status],
        fit_score=result.fit_score,
        status=result.status,
        tailor_id=result.tailor_id,
    )


@router.get("/tailors/{tailor_id}", response_model=Tailor)
@rate_limit()
async def get_tailor(
    request: Request,
    tailor_id: str,
    user_id: str = Depends(current_user_id),
    services: AppServices = Depends(get_services),
):
    tailor = services.store.get_tailor(tailor_id, user_id=user_id)
    if tailor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tailor not found")
    return tailor
