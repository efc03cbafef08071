"""SQLAlchemy ORM models."""

from cvgen.models.user import User
from cvgen.models.profile import (
    Profile,
    WorkExperience,
    Education,
    Skill,
    Project,
    Certification,
    Language,
)
from cvgen.models.job_posting import JobPosting
from cvgen.models.generated_cv import GeneratedCV

__all__ = [
    "User",
    "Profile",
    "WorkExperience",
    "Education",
    "Skill",
    "Project",
    "Certification",
    "Language",
    "JobPosting",
    "GeneratedCV",
]
