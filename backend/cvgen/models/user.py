"""User model — account plus subscription/quota state."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.orm import relationship

from cvgen.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Subscription / quota
    subscription_type = Column(String(10), nullable=False, default="FREE")  # FREE | PRO
    subscription_start_date = Column(DateTime, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)
    job_based_cvs_used = Column(Integer, nullable=False, default=0)
    profile_based_cvs_used = Column(Integer, nullable=False, default=0)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False)
    job_postings = relationship("JobPosting", back_populates="user")
    generated_cvs = relationship("GeneratedCV", back_populates="user")
