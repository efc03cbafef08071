"""Job posting service — owner-scoped CRUD, keyword extraction and analysis."""

import json
import logging
import re

from sqlalchemy.orm import Session

from cvgen.errors import NotFoundError
from cvgen.models.generated_cv import GeneratedCV
from cvgen.models.job_posting import JobPosting
from cvgen.schemas.generated_cv import JobAnalysis
from cvgen.schemas.profile import JobPostingCreateRequest, JobPostingUpdateRequest
from cvgen.services import cv_generator
from cvgen.services.profile_service import get_profile_for_user, profile_snapshot

logger = logging.getLogger(__name__)

TECH_KEYWORDS = (
    "javascript", "typescript", "python", "java", "c++", "c#", "ruby", "php",
    "go", "rust", "react", "angular", "vue", "node", "express", "nestjs",
    "django", "flask", "spring", "docker", "kubernetes", "aws", "azure", "gcp",
    "ci/cd", "jenkins", "gitlab", "mongodb", "postgresql", "mysql", "redis",
    "elasticsearch", "git", "agile", "scrum", "rest", "graphql",
    "microservices", "machine learning", "ai", "data science", "tensorflow",
    "pytorch", "html", "css", "sass", "tailwind", "bootstrap", "sql", "nosql",
    "api", "testing", "jest", "mocha", "cypress",
)

DEGREE_KEYWORDS = ("bachelor", "master", "phd", "degree", "diploma")

_YEARS_RE = re.compile(r"\d+\+?\s*years?", re.IGNORECASE)


def extract_keywords(job_description: str) -> list[str]:
    """Pull known tech terms, "N years" phrases and degree words from a description.

    Plain substring matching, so short terms ("go", "ai") match inside longer
    words. Order: tech terms, then experience phrases, then degree words,
    without duplicates.
    """
    lower = job_description.lower()
    found: list[str] = []

    def add(term: str):
        if term not in found:
            found.append(term)

    for keyword in TECH_KEYWORDS:
        if keyword in lower:
            add(keyword)
    for match in _YEARS_RE.findall(job_description):
        add(match.lower())
    for keyword in DEGREE_KEYWORDS:
        if keyword in lower:
            add(keyword)
    return found


def _json_list(raw: str | None) -> list:
    return json.loads(raw) if raw else []


def job_posting_snapshot(posting: JobPosting) -> dict:
    return {
        "id": posting.id,
        "userId": posting.user_id,
        "jobTitle": posting.job_title,
        "company": posting.company,
        "jobUrl": posting.job_url,
        "jobDescription": posting.job_description,
        "requiredSkills": _json_list(posting.required_skills_json),
        "keywords": _json_list(posting.keywords_json),
        "experienceLevel": posting.experience_level,
        "createdAt": posting.created_at.isoformat(),
    }


def create_job_posting(db: Session, user_id: str, req: JobPostingCreateRequest) -> JobPosting:
    posting = JobPosting(
        user_id=user_id,
        job_title=req.jobTitle,
        company=req.company,
        job_url=req.jobUrl,
        job_description=req.jobDescription,
        required_skills_json=json.dumps(req.requiredSkills),
        keywords_json=json.dumps(extract_keywords(req.jobDescription)),
        experience_level=req.experienceLevel,
    )
    db.add(posting)
    db.commit()
    db.refresh(posting)
    return posting


def list_job_postings(db: Session, user_id: str) -> list[JobPosting]:
    return (
        db.query(JobPosting)
        .filter(JobPosting.user_id == user_id)
        .order_by(JobPosting.created_at.desc())
        .all()
    )


def get_owned_job_posting(db: Session, user_id: str, job_posting_id: str) -> JobPosting:
    """Load a job posting only if it belongs to ``user_id``."""
    posting = (
        db.query(JobPosting)
        .filter(JobPosting.id == job_posting_id, JobPosting.user_id == user_id)
        .first()
    )
    if not posting:
        raise NotFoundError("Job posting not found")
    return posting


def update_job_posting(
    db: Session, user_id: str, job_posting_id: str, req: JobPostingUpdateRequest
) -> JobPosting:
    """Apply the fields that were sent; a new description re-extracts the keywords."""
    posting = get_owned_job_posting(db, user_id, job_posting_id)
    if req.jobTitle is not None:
        posting.job_title = req.jobTitle
    if req.company is not None:
        posting.company = req.company
    if req.jobUrl is not None:
        posting.job_url = req.jobUrl
    if req.jobDescription is not None:
        posting.job_description = req.jobDescription
        posting.keywords_json = json.dumps(extract_keywords(req.jobDescription))
    if req.requiredSkills is not None:
        posting.required_skills_json = json.dumps(req.requiredSkills)
    if req.experienceLevel is not None:
        posting.experience_level = req.experienceLevel
    db.commit()
    db.refresh(posting)
    return posting


def delete_job_posting(db: Session, user_id: str, job_posting_id: str) -> None:
    posting = get_owned_job_posting(db, user_id, job_posting_id)
    # Past generations keep their content; they just lose the link.
    db.query(GeneratedCV).filter(GeneratedCV.job_posting_id == posting.id).update(
        {GeneratedCV.job_posting_id: None}, synchronize_session=False
    )
    db.delete(posting)
    db.commit()


async def analyze_job_posting(db: Session, user_id: str, job_posting_id: str) -> JobAnalysis:
    """Run the AI job analysis and, when it produced anything, refresh the posting.

    Never raises for AI problems: the analysis itself degrades to an empty result.
    """
    posting = get_owned_job_posting(db, user_id, job_posting_id)

    profile = get_profile_for_user(db, user_id)
    snapshot = profile_snapshot(profile) if profile else None

    analysis = await cv_generator.analyze_job(posting.job_description, snapshot)
    if analysis.is_empty():
        logger.info("Job analysis for %s returned nothing; posting left unchanged", posting.id)
        return analysis

    posting.keywords_json = json.dumps(analysis.keywords)
    posting.required_skills_json = json.dumps(analysis.technicalSkills + analysis.softSkills)
    posting.experience_level = analysis.experienceLevel or "Not specified"
    db.commit()
    return analysis
