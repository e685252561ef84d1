from __future__ import annotations

from fastapi import APIRouter, Depends

from better_contacts.api.v1.deps import get_settings_dep
from better_contacts.api.v1.schemas import RecomputeScoresResponse
from better_contacts.core.security import api_secret_header, verify_api_secret
from better_contacts.workers.queue import enqueue_job

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/recompute_scores", response_model=RecomputeScoresResponse)
def recompute_scores(
    user_id: str | None = None,
    settings=Depends(get_settings_dep),
    x_api_secret: str | None = Depends(api_secret_header),
) -> RecomputeScoresResponse:
    verify_api_secret(settings, x_api_secret)
    job_id = enqueue_job("recompute_scores", user_id)
    return RecomputeScoresResponse(job_id=job_id, status="enqueued")
