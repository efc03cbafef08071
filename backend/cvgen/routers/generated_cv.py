"""Generated CV router — generation, editing, PDF rendering and download."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from cvgen.database import get_db
from cvgen.errors import (
    GenerationError,
    NotFoundError,
    QuotaExceededError,
    RenderError,
    TemplateNotAvailableError,
)
from cvgen.models.user import User
from cvgen.schemas.generated_cv import (
    GenerateCVRequest,
    GeneratedCVResponse,
    RenderPdfRequest,
    RenderPdfResponse,
    TemplateInfo,
    UpdateSummaryRequest,
)
from cvgen.middleware.auth import get_current_user
from cvgen.services import generation_service, renderer

router = APIRouter(prefix="/api/generated-cv", tags=["generated-cv"])


@router.post("/generate", response_model=GeneratedCVResponse)
async def generate_cv(
    req: GenerateCVRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Generate a CV from the caller's profile, optionally tailored to a job posting.

    A generation that fails after the record was created is returned as the
    failed record (with ``errorMessage``) rather than as an HTTP error.
    """
    try:
        record = await generation_service.generate(db, current_user.id, req)
    except QuotaExceededError as e:
        raise HTTPException(status_code=403, detail=e.to_dict())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GenerationError as e:
        if not e.record_id:
            raise HTTPException(status_code=502, detail=str(e))
        record = generation_service.get_owned_cv(db, current_user.id, e.record_id)
    return generation_service.to_response(record)


@router.get("", response_model=list[GeneratedCVResponse])
def list_cvs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The caller's generations, newest first."""
    return [generation_service.to_response(r) for r in generation_service.list_cvs(db, current_user.id)]


@router.get("/templates", response_model=list[TemplateInfo])
def list_templates():
    return [TemplateInfo(**t) for t in renderer.list_templates()]


@router.get("/{cv_id}", response_model=GeneratedCVResponse)
def get_cv(
    cv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        record = generation_service.get_owned_cv(db, current_user.id, cv_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return generation_service.to_response(record)


@router.patch("/{cv_id}/summary", response_model=GeneratedCVResponse)
def update_summary(
    cv_id: str,
    req: UpdateSummaryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Edit the professional summary of a completed CV."""
    try:
        record = generation_service.update_summary(db, current_user.id, cv_id, req.professionalSummary)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return generation_service.to_response(record)


@router.post("/{cv_id}/pdf", response_model=RenderPdfResponse)
async def render_pdf(
    cv_id: str,
    req: RenderPdfRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Render (or re-render) the PDF; the previous file for this CV is replaced."""
    template_name = req.templateName
    try:
        record = await generation_service.render_pdf(db, current_user.id, cv_id, template_name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TemplateNotAvailableError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except RenderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RenderPdfResponse(url=record.pdf_url, templateName=template_name or record.template_name)


@router.get("/{cv_id}/download")
def download_pdf(
    cv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        path = generation_service.get_pdf_path(db, current_user.id, cv_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return FileResponse(path, media_type="application/pdf", filename=path.name)


@router.delete("/{cv_id}", status_code=204)
def delete_cv(
    cv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        generation_service.delete_cv(db, current_user.id, cv_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
