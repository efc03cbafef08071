"""Job postings router — stored target roles and their AI analysis."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cvgen.database import get_db
from cvgen.errors import NotFoundError
from cvgen.models.user import User
from cvgen.schemas.generated_cv import JobAnalysis
from cvgen.schemas.profile import (
    JobPostingCreateRequest,
    JobPostingResponse,
    JobPostingUpdateRequest,
)
from cvgen.middleware.auth import get_current_user
from cvgen.services import job_posting_service

router = APIRouter(prefix="/api/job-postings", tags=["job-postings"])


@router.post("", response_model=JobPostingResponse, status_code=201)
def create_job_posting(
    req: JobPostingCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Store a job posting; keywords are extracted from its description."""
    posting = job_posting_service.create_job_posting(db, current_user.id, req)
    return JobPostingResponse(**job_posting_service.job_posting_snapshot(posting))


@router.get("", response_model=list[JobPostingResponse])
def list_job_postings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    postings = job_posting_service.list_job_postings(db, current_user.id)
    return [JobPostingResponse(**job_posting_service.job_posting_snapshot(p)) for p in postings]


@router.get("/{job_posting_id}", response_model=JobPostingResponse)
def get_job_posting(
    job_posting_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        posting = job_posting_service.get_owned_job_posting(db, current_user.id, job_posting_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return JobPostingResponse(**job_posting_service.job_posting_snapshot(posting))


@router.patch("/{job_posting_id}", response_model=JobPostingResponse)
def update_job_posting(
    job_posting_id: str,
    req: JobPostingUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Edit a posting in place; past CVs keep their link to it."""
    try:
        posting = job_posting_service.update_job_posting(db, current_user.id, job_posting_id, req)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return JobPostingResponse(**job_posting_service.job_posting_snapshot(posting))


@router.delete("/{job_posting_id}", status_code=204)
def delete_job_posting(
    job_posting_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        job_posting_service.delete_job_posting(db, current_user.id, job_posting_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{job_posting_id}/analyze", response_model=JobAnalysis)
async def analyze_job_posting(
    job_posting_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Best-effort AI analysis; an AI failure yields an empty analysis, not an error."""
    try:
        return await job_posting_service.analyze_job_posting(db, current_user.id, job_posting_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
