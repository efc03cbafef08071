"""Generation orchestrator: quota gate, AI generation, record lifecycle and PDF rendering.

A GeneratedCV row is created ``pending`` only after the quota and ownership
checks pass, and it always ends ``completed`` or ``failed``. Content, status
and the quota increment are committed together, so a completed record and
its counted usage cannot drift apart.
"""

import asyncio
import contextlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.orm import Session

from cvgen.errors import GenerationError, NotFoundError, TemplateNotAvailableError
from cvgen.models.generated_cv import GeneratedCV
from cvgen.schemas.generated_cv import GenerateCVRequest, GeneratedCVContent, GeneratedCVResponse
from cvgen.services import cv_generator, quota_service, renderer
from cvgen.services.ai_client import ai_model_name
from cvgen.services.job_posting_service import get_owned_job_posting, job_posting_snapshot
from cvgen.services.profile_service import get_owned_profile, profile_snapshot
from cvgen.services.prompt_builder import DEFAULT_LANGUAGE, DEFAULT_TONE, build_prompt

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


def _iso(value: datetime) -> str:
    return value.isoformat()


def to_response(record: GeneratedCV) -> GeneratedCVResponse:
    content = json.loads(record.generated_content) if record.generated_content else None
    job = record.job_posting
    return GeneratedCVResponse(
        id=record.id,
        userId=record.user_id,
        profileId=record.profile_id,
        jobPostingId=record.job_posting_id,
        generationStatus=record.generation_status,
        cvType=record.cv_type,
        tone=record.tone,
        templateName=record.template_name,
        contentLanguage=record.content_language,
        includeProfilePicture=record.include_profile_picture,
        cvSpecificPhotoUrl=record.cv_specific_photo_url,
        generatedContent=content,
        professionalSummary=record.professional_summary,
        aiModelUsed=record.ai_model_used,
        errorMessage=record.error_message,
        pdfUrl=record.pdf_url,
        jobTitle=job.job_title if job else None,
        company=job.company if job else None,
        createdAt=_iso(record.created_at),
        updatedAt=_iso(record.updated_at),
    )


def _mark_failed(db: Session, record_id: str, reason: str) -> None:
    db.rollback()
    record = db.get(GeneratedCV, record_id)
    record.generation_status = STATUS_FAILED
    record.generated_content = None
    record.professional_summary = None
    record.error_message = reason
    db.commit()


async def generate(db: Session, user_id: str, req: GenerateCVRequest) -> GeneratedCV:
    """Run one generation request end to end and return the resolved record.

    Raises QuotaExceededError or NotFoundError before any record exists.
    Once the record exists every failure marks it ``failed`` and is re-raised;
    a GenerationError carries the failed record's id in ``record_id``.
    """
    cv_type = quota_service.cv_type_for(req.jobPostingId)

    # Limited users are serialised so two requests cannot share the last slot.
    if quota_service.is_limited(db, user_id):
        guard = quota_service.user_lock(user_id)
    else:
        guard = contextlib.nullcontext()

    async with guard:
        counted = quota_service.check_can_generate(db, user_id, cv_type)

        profile = get_owned_profile(db, user_id, req.profileId)
        job_posting = (
            get_owned_job_posting(db, user_id, req.jobPostingId) if req.jobPostingId else None
        )
        profile_data = profile_snapshot(profile)
        job_data = job_posting_snapshot(job_posting) if job_posting else None

        record = GeneratedCV(
            user_id=user_id,
            profile_id=profile.id,
            job_posting_id=job_posting.id if job_posting else None,
            generation_status=STATUS_PENDING,
            cv_type=cv_type.value,
            tone=req.tone or DEFAULT_TONE,
            template_name=req.templateName or renderer.DEFAULT_TEMPLATE,
            content_language=req.contentLanguage or DEFAULT_LANGUAGE,
            include_profile_picture=req.includeProfilePicture,
            cv_specific_photo_url=req.cvSpecificPhotoUrl,
            ai_model_used=ai_model_name(),
        )
        db.add(record)
        db.commit()
        record_id = record.id
        logger.info("Generation %s started (user=%s, type=%s)", record_id, user_id, cv_type.value)

        try:
            instruction = build_prompt(
                profile_data, job_data, tone=record.tone, language=record.content_language
            )
            content = await cv_generator.generate_cv_content(instruction)

            record.generated_content = content.model_dump_json()
            record.professional_summary = content.professionalSummary
            record.generation_status = STATUS_COMPLETED
            record.error_message = None
            quota_service.increment_usage(db, user_id, cv_type, commit=False, counted=counted)
            db.commit()
        except asyncio.CancelledError:
            logger.warning("Generation %s cancelled", record_id)
            _mark_failed(db, record_id, "CV generation was cancelled")
            raise
        except Exception as e:
            logger.warning("Generation %s failed: %s", record_id, e)
            _mark_failed(db, record_id, str(e))
            if isinstance(e, GenerationError):
                e.record_id = record_id
            raise

    logger.info("Generation %s completed", record_id)
    db.refresh(record)
    return record


def list_cvs(db: Session, user_id: str) -> list[GeneratedCV]:
    return (
        db.query(GeneratedCV)
        .filter(GeneratedCV.user_id == user_id)
        .order_by(GeneratedCV.created_at.desc())
        .all()
    )


def get_owned_cv(db: Session, user_id: str, record_id: str) -> GeneratedCV:
    record = (
        db.query(GeneratedCV)
        .filter(GeneratedCV.id == record_id, GeneratedCV.user_id == user_id)
        .first()
    )
    if not record:
        raise NotFoundError("Generated CV not found")
    return record


def _completed(db: Session, user_id: str, record_id: str) -> GeneratedCV:
    record = get_owned_cv(db, user_id, record_id)
    if record.generation_status != STATUS_COMPLETED:
        raise ValueError(f"CV generation is {record.generation_status}, not completed")
    return record


def update_summary(db: Session, user_id: str, record_id: str, summary: str) -> GeneratedCV:
    """Replace the professional summary in both the column and the stored document."""
    record = _completed(db, user_id, record_id)
    content = json.loads(record.generated_content)
    content["professionalSummary"] = summary
    record.generated_content = json.dumps(content, ensure_ascii=False)
    record.professional_summary = summary
    db.commit()
    db.refresh(record)
    return record


def delete_cv(db: Session, user_id: str, record_id: str) -> None:
    record = get_owned_cv(db, user_id, record_id)
    if record.pdf_storage_path:
        Path(record.pdf_storage_path).unlink(missing_ok=True)
    db.delete(record)
    db.commit()


def _photo_url(record: GeneratedCV) -> str | None:
    if record.cv_specific_photo_url:
        return record.cv_specific_photo_url
    if record.include_profile_picture and record.profile:
        return record.profile.profile_picture_url
    return None


def render_metadata(record: GeneratedCV) -> dict:
    """Everything the templates show that is not part of the AI document."""
    profile = record.profile
    job = record.job_posting
    return {
        "fullName": profile.full_name if profile else None,
        "email": record.user.email if record.user else None,
        "phone": profile.phone if profile else None,
        "location": profile.location if profile else None,
        "linkedinUrl": profile.linkedin_url if profile else None,
        "githubUrl": profile.github_url if profile else None,
        "portfolioUrl": profile.portfolio_url if profile else None,
        "photoUrl": _photo_url(record),
        "jobTitle": job.job_title if job else None,
        "company": job.company if job else None,
        "generationDate": datetime.now(timezone.utc).strftime("%B %d, %Y"),
        "language": record.content_language,
        "languageCode": renderer.language_code(record.content_language),
    }


async def render_pdf(
    db: Session,
    user_id: str,
    record_id: str,
    template_name: str | None = None,
) -> GeneratedCV:
    """Render a completed CV to PDF, replacing any earlier file for the record.

    ``template_name`` defaults to the template chosen at generation time.
    Premium templates need an active PRO plan.
    """
    record = _completed(db, user_id, record_id)
    template_id = template_name or record.template_name

    if renderer.is_premium(template_id) and quota_service.is_limited(db, user_id):
        raise TemplateNotAvailableError(template_id)

    content = GeneratedCVContent.model_validate_json(record.generated_content).model_dump()
    path = await renderer.render(
        content,
        render_metadata(record),
        template_id,
        renderer.storage_path_for(record.id),
    )

    record.pdf_storage_path = path
    record.pdf_url = renderer.download_url_for(record.id)
    db.commit()
    db.refresh(record)
    logger.info("Rendered PDF for %s with template %s", record.id, template_id)
    return record


def get_pdf_path(db: Session, user_id: str, record_id: str) -> Path:
    record = get_owned_cv(db, user_id, record_id)
    if not record.pdf_storage_path or not Path(record.pdf_storage_path).is_file():
        raise NotFoundError("PDF has not been rendered yet")
    return Path(record.pdf_storage_path)
