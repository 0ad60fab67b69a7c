"""
Job Posting Model
Stores jobs posted by clients looking for professionals.
"""
from enum import Enum

from sqlalchemy import Index, String, Text

from nexus import db
from nexus.models import BaseModel


class JobStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class JobPosting(BaseModel):
    """Job posting. Only OPEN jobs take part in matching."""

    __tablename__ = "job_postings"

    title = db.Column(String(500), nullable=False)
    description = db.Column(Text, nullable=False)
    requirements = db.Column(Text)
    location = db.Column(String(255), index=True)
    job_type = db.Column(String(100))  # coaching, training, consulting, workshop, ...
    region = db.Column(String(100))  # Emirate or region tag, e.g. dubai
    status = db.Column(String(50), nullable=False, default=JobStatus.OPEN.value, index=True)

    __table_args__ = (
        Index("idx_job_postings_status_created", "status", "created_at"),
    )

    def to_dict(self):
        """Convert job posting to dictionary."""
        data = super().to_dict()
        data.update({
            "title": self.title,
            "description": self.description,
            "requirements": self.requirements,
            "location": self.location,
            "job_type": self.job_type,
            "region": self.region,
            "status": self.status,
        })
        return data

    def __repr__(self):
        return f"<JobPosting {self.title}>"
