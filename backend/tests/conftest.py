"""Shared fixtures: in-memory database, isolated PDF storage and sample data."""

import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import cvgen.models  # noqa: F401
from cvgen.config import settings
from cvgen.database import Base
from cvgen.models import (
    User,
    Profile,
    WorkExperience,
    Education,
    Skill,
    Project,
    Language,
    JobPosting,
)
from cvgen.services import quota_service


SAMPLE_CONTENT = {
    "sectionTitles": {
        "professionalSummary": "Professional Summary",
        "workExperience": "Work Experience",
        "education": "Education",
        "skills": "Skills",
        "projects": "Projects",
        "certifications": "Certifications",
        "languages": "Languages",
    },
    "professionalSummary": "Backend engineer with six years of Python and cloud experience.",
    "workExperience": [
        {
            "company": "Acme Corp",
            "position": "Senior Backend Engineer",
            "location": "Lisbon",
            "startDate": "2020-01",
            "endDate": None,
            "description": "Own the billing platform.",
            "achievements": ["Cut invoice latency by 40%"],
        }
    ],
    "education": [
        {
            "institution": "University of Porto",
            "degree": "BSc",
            "fieldOfStudy": "Computer Science",
            "startDate": "2012",
            "endDate": "2015",
            "gpa": None,
            "description": None,
        }
    ],
    "skills": [
        {"name": "Python", "category": "Programming Languages", "proficiencyLevel": "Expert"},
        {"name": "Docker", "category": "Cloud & DevOps", "proficiencyLevel": None},
        {"name": "Go", "category": "Programming Languages", "proficiencyLevel": "Intermediate"},
    ],
    "projects": [
        {
            "name": "invoicer",
            "description": "Open-source invoicing library.",
            "technologies": ["Python", "PostgreSQL"],
            "url": None,
            "githubUrl": "https://github.com/ada/invoicer",
        }
    ],
    "certifications": [],
    "languages": [{"name": "English", "proficiency": "Fluent"}],
}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def reset_user_locks():
    quota_service._user_locks.clear()
    quota_service._lock_users.clear()
    yield
    quota_service._user_locks.clear()
    quota_service._lock_users.clear()


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    path = tmp_path / "cvs"
    monkeypatch.setattr(settings, "CV_STORAGE_DIR", str(path))
    return path


@pytest.fixture
def fake_ai(monkeypatch):
    """Replace the AI transport used by the generator; returns the call log."""
    calls = []

    def install(reply=None, error=None):
        async def fake_chat(system, messages, max_tokens=400, temperature=0.7, json_mode=False):
            calls.append({
                "system": system,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "json_mode": json_mode,
            })
            if error is not None:
                raise error
            return reply if reply is not None else json.dumps(SAMPLE_CONTENT)

        monkeypatch.setattr("cvgen.services.cv_generator.chat", fake_chat)
        return calls

    return install


def make_user(db, email="ada@example.com", **fields) -> User:
    user = User(email=email, password_hash="x", display_name=email.split("@")[0], **fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_profile(db, user, **fields) -> Profile:
    profile = Profile(
        user_id=user.id,
        full_name=fields.pop("full_name", "Ada Lovelace"),
        location="Lisbon",
        professional_summary="Backend engineer.",
        profile_picture_url=fields.pop("profile_picture_url", None),
        **fields,
    )
    profile.work_experience = [
        WorkExperience(
            company="Acme Corp",
            position="Senior Backend Engineer",
            start_date="2020-01",
            description="Own the billing platform.",
            achievements_json=json.dumps(["Cut invoice latency by 40%"]),
            position_order=0,
        )
    ]
    profile.education = [
        Education(
            institution="University of Porto",
            degree="BSc",
            field_of_study="Computer Science",
            start_date="2012",
            end_date="2015",
            position_order=0,
        )
    ]
    profile.skills = [
        Skill(name="Python", category="Programming Languages", position_order=0),
        Skill(name="Docker", category=None, position_order=1),
    ]
    profile.projects = [
        Project(name="invoicer", technologies_json=json.dumps(["Python"]), position_order=0)
    ]
    profile.languages = [Language(name="English", proficiency="Fluent", position_order=0)]
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def make_job(db, user, **fields) -> JobPosting:
    posting = JobPosting(
        user_id=user.id,
        job_title=fields.pop("job_title", "Staff Python Engineer"),
        company=fields.pop("company", "Globex"),
        job_description=fields.pop(
            "job_description",
            "We need 5+ years of Python, Docker and AWS. Bachelor degree preferred.",
        ),
        required_skills_json=json.dumps(["Python", "AWS"]),
        keywords_json=json.dumps(["python", "docker", "aws"]),
        experience_level="Senior",
        **fields,
    )
    db.add(posting)
    db.commit()
    db.refresh(posting)
    return posting
