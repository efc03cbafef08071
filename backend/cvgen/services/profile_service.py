"""Profile service — owner-scoped reads and the snapshots handed to the generator."""

import json

from sqlalchemy.orm import Session

from cvgen.errors import NotFoundError
from cvgen.models.profile import (
    Profile,
    WorkExperience,
    Education,
    Skill,
    Project,
    Certification,
    Language,
)
from cvgen.schemas.profile import ProfileUpsertRequest


def _json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def get_owned_profile(db: Session, user_id: str, profile_id: str) -> Profile:
    """Load a profile only if it belongs to ``user_id``.

    A profile owned by someone else is reported exactly like a missing one.
    """
    profile = (
        db.query(Profile)
        .filter(Profile.id == profile_id, Profile.user_id == user_id)
        .first()
    )
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def get_profile_for_user(db: Session, user_id: str) -> Profile | None:
    return db.query(Profile).filter(Profile.user_id == user_id).first()


def profile_snapshot(profile: Profile) -> dict:
    """Flatten a profile and all of its sections into a plain dict."""
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "fullName": profile.full_name,
        "phone": profile.phone,
        "location": profile.location,
        "linkedinUrl": profile.linkedin_url,
        "githubUrl": profile.github_url,
        "portfolioUrl": profile.portfolio_url,
        "professionalSummary": profile.professional_summary,
        "profilePictureUrl": profile.profile_picture_url,
        "workExperience": [
            {
                "company": w.company,
                "position": w.position,
                "location": w.location,
                "startDate": w.start_date,
                "endDate": w.end_date,
                "description": w.description,
                "achievements": _json_list(w.achievements_json),
            }
            for w in profile.work_experience
        ],
        "education": [
            {
                "institution": e.institution,
                "degree": e.degree,
                "fieldOfStudy": e.field_of_study,
                "startDate": e.start_date,
                "endDate": e.end_date,
                "gpa": e.gpa,
                "description": e.description,
            }
            for e in profile.education
        ],
        "skills": [
            {
                "name": s.name,
                "category": s.category,
                "proficiencyLevel": s.proficiency_level,
            }
            for s in profile.skills
        ],
        "projects": [
            {
                "name": p.name,
                "description": p.description,
                "technologies": _json_list(p.technologies_json),
                "url": p.url,
                "githubUrl": p.github_url,
            }
            for p in profile.projects
        ],
        "certifications": [
            {
                "name": c.name,
                "issuer": c.issuer,
                "issueDate": c.issue_date,
                "expiryDate": c.expiry_date,
            }
            for c in profile.certifications
        ],
        "languages": [
            {"name": l.name, "proficiency": l.proficiency}
            for l in profile.languages
        ],
    }


def upsert_profile(db: Session, user_id: str, req: ProfileUpsertRequest) -> Profile:
    """Create the user's profile, or replace it wholesale (sections included)."""
    profile = get_profile_for_user(db, user_id)
    if not profile:
        profile = Profile(user_id=user_id)
        db.add(profile)

    profile.full_name = req.fullName
    profile.phone = req.phone
    profile.location = req.location
    profile.linkedin_url = req.linkedinUrl
    profile.github_url = req.githubUrl
    profile.portfolio_url = req.portfolioUrl
    profile.professional_summary = req.professionalSummary
    profile.profile_picture_url = req.profilePictureUrl

    profile.work_experience = [
        WorkExperience(
            company=w.company,
            position=w.position,
            location=w.location,
            start_date=w.startDate,
            end_date=w.endDate,
            description=w.description,
            achievements_json=json.dumps(w.achievements),
            position_order=i,
        )
        for i, w in enumerate(req.workExperience)
    ]
    profile.education = [
        Education(
            institution=e.institution,
            degree=e.degree,
            field_of_study=e.fieldOfStudy,
            start_date=e.startDate,
            end_date=e.endDate,
            gpa=e.gpa,
            description=e.description,
            position_order=i,
        )
        for i, e in enumerate(req.education)
    ]
    profile.skills = [
        Skill(name=s.name, category=s.category, proficiency_level=s.proficiencyLevel, position_order=i)
        for i, s in enumerate(req.skills)
    ]
    profile.projects = [
        Project(
            name=p.name,
            description=p.description,
            technologies_json=json.dumps(p.technologies),
            url=p.url,
            github_url=p.githubUrl,
            position_order=i,
        )
        for i, p in enumerate(req.projects)
    ]
    profile.certifications = [
        Certification(
            name=c.name,
            issuer=c.issuer,
            issue_date=c.issueDate,
            expiry_date=c.expiryDate,
            position_order=i,
        )
        for i, c in enumerate(req.certifications)
    ]
    profile.languages = [
        Language(name=l.name, proficiency=l.proficiency, position_order=i)
        for i, l in enumerate(req.languages)
    ]

    db.commit()
    db.refresh(profile)
    return profile
