from __future__ import annotations

import logging

from workify.core.errors import ConflictError, NotFoundError
from workify.db.store import Store
from workify.schemas.applications import ApplicationAction

logger = logging.getLogger(__name__)

MANUAL_SUBMISSION_STATUS = "submitted_manual"


class ApplicationService:
    def __init__(self, store: Store) -> None:
        self._store = store

    def review(self, user_id: str, tailor_id: str, action: ApplicationAction) -> str | None:
        """Approve or reject a tailor. Approval records an application and returns its id."""
        tailor = self._store.get_tailor(tailor_id, user_id=user_id)
        if tailor is None:
            raise NotFoundError("Tailor not found")
        if tailor.status != "pending_review":
            raise ConflictError(f"Tailor already {tailor.status}")

        if action == "reject":
            self._store.set_tailor_status(tailor.id, "rejected")
            logger.info("tailor_rejected tailor_id=%s", tailor.id)
            return None

        job = self._store.get_job(tailor.job_id)
        self._store.set_tailor_status(tailor.id, "approved")
        application_id = self._store.create_application(
            user_id=user_id,
            job_id=tailor.job_id,
            tailor_id=tailor.id,
            status=MANUAL_SUBMISSION_STATUS,
            company=job.company if job else None,
            position=job.title if job else None,
        )
        logger.info("tailor_approved tailor_id=%s application_id=%s", tailor.id, application_id)
        return application_id
