"""Job posting model — a target role used to tailor a generation."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from cvgen.database import Base


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    job_title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    job_url = Column(String(1000), nullable=True)
    job_description = Column(Text, nullable=False)
    required_skills_json = Column(Text, nullable=True)  # JSON: ["..."]
    keywords_json = Column(Text, nullable=True)         # JSON: ["..."]
    experience_level = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="job_postings")
    generated_cvs = relationship("GeneratedCV", back_populates="job_posting")
