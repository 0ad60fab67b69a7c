"""SQLAlchemy models package."""

from datetime import datetime
from nexus import db


class BaseModel(db.Model):
    """Base model with common columns."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        """String representation."""
        return f"<{self.__class__.__name__} id={self.id}>"


# Import marketplace models to ensure they're registered with SQLAlchemy
from nexus.models.professional_profile import ProfessionalProfile
from nexus.models.job_posting import JobPosting, JobStatus
