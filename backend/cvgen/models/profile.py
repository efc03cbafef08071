"""Career profile model and its section tables."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from cvgen.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    full_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    portfolio_url = Column(String(500), nullable=True)
    professional_summary = Column(Text, nullable=True)
    profile_picture_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="profile")
    work_experience = relationship("WorkExperience", back_populates="profile",
                                   cascade="all, delete-orphan", order_by="WorkExperience.position_order")
    education = relationship("Education", back_populates="profile",
                             cascade="all, delete-orphan", order_by="Education.position_order")
    skills = relationship("Skill", back_populates="profile",
                          cascade="all, delete-orphan", order_by="Skill.position_order")
    projects = relationship("Project", back_populates="profile",
                            cascade="all, delete-orphan", order_by="Project.position_order")
    certifications = relationship("Certification", back_populates="profile",
                                  cascade="all, delete-orphan", order_by="Certification.position_order")
    languages = relationship("Language", back_populates="profile",
                             cascade="all, delete-orphan", order_by="Language.position_order")


class WorkExperience(Base):
    __tablename__ = "work_experiences"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    company = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(String(20), nullable=False)
    end_date = Column(String(20), nullable=True)  # null = present
    description = Column(Text, nullable=True)
    achievements_json = Column(Text, nullable=True)  # JSON: ["..."]
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="work_experience")


class Education(Base):
    __tablename__ = "educations"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    institution = Column(String(255), nullable=False)
    degree = Column(String(255), nullable=False)
    field_of_study = Column(String(255), nullable=True)
    start_date = Column(String(20), nullable=False)
    end_date = Column(String(20), nullable=True)
    gpa = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="education")


class Skill(Base):
    __tablename__ = "skills"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    name = Column(String(100), nullable=False)
    category = Column(String(100), nullable=True)
    proficiency_level = Column(String(50), nullable=True)
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="skills")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    technologies_json = Column(Text, nullable=True)  # JSON: ["..."]
    url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="projects")


class Certification(Base):
    __tablename__ = "certifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    name = Column(String(255), nullable=False)
    issuer = Column(String(255), nullable=False)
    issue_date = Column(String(20), nullable=False)
    expiry_date = Column(String(20), nullable=True)
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="certifications")


class Language(Base):
    __tablename__ = "languages"

    id = Column(String(36), primary_key=True, default=_uuid)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    name = Column(String(100), nullable=False)
    proficiency = Column(String(50), nullable=True)
    position_order = Column(Integer, nullable=False, default=0)

    profile = relationship("Profile", back_populates="languages")
