"""Generated CV model — one row per generation attempt."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from cvgen.database import Base


class GeneratedCV(Base):
    __tablename__ = "generated_cvs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    job_posting_id = Column(String(36), ForeignKey("job_postings.id"), nullable=True)

    generation_status = Column(String(20), nullable=False, default="pending")  # pending | completed | failed
    cv_type = Column(String(20), nullable=False)  # JOB_BASED | PROFILE_BASED

    # Style inputs, fixed at creation
    tone = Column(String(100), nullable=False, default="Professional")
    template_name = Column(String(50), nullable=False, default="modern")
    content_language = Column(String(50), nullable=False, default="English")
    include_profile_picture = Column(Boolean, nullable=False, default=False)
    cv_specific_photo_url = Column(String(500), nullable=True)

    generated_content = Column(Text, nullable=True)      # JSON: GeneratedCVContent
    professional_summary = Column(Text, nullable=True)
    ai_model_used = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)

    pdf_url = Column(String(1000), nullable=True)
    pdf_storage_path = Column(String(1000), nullable=True)

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="generated_cvs")
    profile = relationship("Profile")
    job_posting = relationship("JobPosting", back_populates="generated_cvs")
