"""Tests for job posting keyword extraction, CRUD and analysis persistence."""

import asyncio
import json

import pytest

from cvgen.errors import NotFoundError
from cvgen.models.generated_cv import GeneratedCV
from cvgen.models.job_posting import JobPosting
from cvgen.schemas.profile import JobPostingCreateRequest, JobPostingUpdateRequest
from cvgen.services import job_posting_service
from cvgen.services.job_posting_service import extract_keywords

from conftest import make_job, make_profile, make_user


class TestExtractKeywords:
    """Deterministic keyword extraction."""

    def test_tech_years_and_degrees(self):
        """Tech terms first, then experience phrases, then degree words."""
        keywords = extract_keywords(
            "Senior engineer with 5+ years of Python and Docker. Bachelor degree required."
        )
        assert keywords.index("python") < keywords.index("5+ years") < keywords.index("bachelor")
        assert "docker" in keywords
        assert "degree" in keywords

    def test_no_duplicates(self):
        keywords = extract_keywords("Python, python and PYTHON. 3 years, 3 years.")
        assert keywords.count("python") == 1
        assert keywords.count("3 years") == 1

    def test_nothing_found(self):
        assert extract_keywords("Friendly florist wanted.") == []


class TestCrud:
    """Owner-scoped posting management."""

    def test_create_extracts_keywords(self, db):
        user = make_user(db)
        posting = job_posting_service.create_job_posting(
            db,
            user.id,
            JobPostingCreateRequest(
                jobTitle="Platform Engineer",
                jobDescription="Kubernetes and AWS, 4 years minimum.",
                requiredSkills=["Kubernetes"],
            ),
        )
        snapshot = job_posting_service.job_posting_snapshot(posting)
        assert "kubernetes" in snapshot["keywords"]
        assert "4 years" in snapshot["keywords"]
        assert snapshot["requiredSkills"] == ["Kubernetes"]

    def test_foreign_posting_not_found(self, db):
        owner = make_user(db, email="owner@example.com")
        other = make_user(db, email="other@example.com")
        posting = make_job(db, owner)
        with pytest.raises(NotFoundError):
            job_posting_service.get_owned_job_posting(db, other.id, posting.id)

    def test_update_reextracts_keywords(self, db):
        """A new description replaces the keywords; unsent fields stay as they were."""
        user = make_user(db)
        posting = make_job(db, user)

        updated = job_posting_service.update_job_posting(
            db,
            user.id,
            posting.id,
            JobPostingUpdateRequest(jobDescription="Rust and Kubernetes, 7 years."),
        )

        snapshot = job_posting_service.job_posting_snapshot(updated)
        assert snapshot["keywords"] == ["rust", "kubernetes", "7 years"]
        assert snapshot["jobTitle"] == "Staff Python Engineer"
        assert snapshot["requiredSkills"] == ["Python", "AWS"]
        assert snapshot["experienceLevel"] == "Senior"

    def test_update_without_description_keeps_keywords(self, db):
        user = make_user(db)
        posting = make_job(db, user)
        updated = job_posting_service.update_job_posting(
            db, user.id, posting.id, JobPostingUpdateRequest(jobTitle="Principal Engineer")
        )
        snapshot = job_posting_service.job_posting_snapshot(updated)
        assert snapshot["jobTitle"] == "Principal Engineer"
        assert snapshot["keywords"] == ["python", "docker", "aws"]

    def test_update_foreign_posting_not_found(self, db):
        owner = make_user(db, email="owner@example.com")
        other = make_user(db, email="other@example.com")
        posting = make_job(db, owner)
        with pytest.raises(NotFoundError):
            job_posting_service.update_job_posting(
                db, other.id, posting.id, JobPostingUpdateRequest(jobTitle="Hijacked")
            )
        db.expire_all()
        assert db.get(JobPosting, posting.id).job_title == "Staff Python Engineer"

    def test_delete_unlinks_generated_cvs(self, db):
        """Deleting a posting keeps past CVs but clears their link."""
        user = make_user(db)
        profile = make_profile(db, user)
        posting = make_job(db, user)
        cv = GeneratedCV(
            user_id=user.id,
            profile_id=profile.id,
            job_posting_id=posting.id,
            generation_status="failed",
            cv_type="JOB_BASED",
        )
        db.add(cv)
        db.commit()

        job_posting_service.delete_job_posting(db, user.id, posting.id)

        db.expire_all()
        assert db.query(JobPosting).count() == 0
        assert db.get(GeneratedCV, cv.id).job_posting_id is None


class TestAnalyze:
    """AI analysis refreshes the posting only when it produced something."""

    def test_successful_analysis_updates_posting(self, db, fake_ai):
        fake_ai(reply=json.dumps({
            "technicalSkills": ["Python", "AWS"],
            "softSkills": ["Mentoring"],
            "experienceLevel": "Staff",
            "keywords": ["python", "aws", "mentoring"],
            "roleExpectations": ["Lead platform work"],
            "matchAnalysis": None,
        }))
        user = make_user(db)
        posting = make_job(db, user)

        analysis = asyncio.run(job_posting_service.analyze_job_posting(db, user.id, posting.id))

        assert analysis.experienceLevel == "Staff"
        db.expire_all()
        snapshot = job_posting_service.job_posting_snapshot(db.get(JobPosting, posting.id))
        assert snapshot["requiredSkills"] == ["Python", "AWS", "Mentoring"]
        assert snapshot["keywords"] == ["python", "aws", "mentoring"]
        assert snapshot["experienceLevel"] == "Staff"

    def test_failed_analysis_leaves_posting(self, db, fake_ai):
        """An AI failure returns an empty analysis and changes nothing."""
        fake_ai(error=RuntimeError("down"))
        user = make_user(db)
        posting = make_job(db, user)

        analysis = asyncio.run(job_posting_service.analyze_job_posting(db, user.id, posting.id))

        assert analysis.is_empty()
        db.expire_all()
        assert db.get(JobPosting, posting.id).experience_level == "Senior"

    def test_match_uses_profile(self, db, fake_ai):
        """With a profile on file the prompt carries the candidate data."""
        calls = fake_ai(reply=json.dumps({"keywords": ["python"]}))
        user = make_user(db)
        make_profile(db, user)
        posting = make_job(db, user)
        asyncio.run(job_posting_service.analyze_job_posting(db, user.id, posting.id))
        assert "Ada Lovelace" in calls[0]["messages"][0]["content"]
