from __future__ import annotations

from fastapi import HTTPException, Request

from workify.core.errors import WorkifyError
from workify.services.container import AppServices


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def raise_workify_error(exc: WorkifyError, detail: object | None = None) -> None:
    raise HTTPException(status_code=exc.status_code, detail=detail if detail is not None else str(exc)) from exc
