"""
Professional Profile Model
Stores a professional's public profile and its optional precomputed embedding.
"""
from sqlalchemy import Integer, String, Text

from nexus import db
from nexus.models import BaseModel


class ProfessionalProfile(BaseModel):
    """Professional offering services on the marketplace."""

    __tablename__ = "professional_profiles"

    # Identity
    first_name = db.Column(String(100), nullable=False)
    last_name = db.Column(String(100), nullable=True)

    # Matching fields
    title = db.Column(String(200))
    bio = db.Column(Text)
    location = db.Column(String(200), index=True)
    industry_focus = db.Column(String(200))
    years_experience = db.Column(Integer)

    # Embedding of title | bio | industry focus, stored as a JSON array
    embedding = db.Column(db.JSON(none_as_null=True), nullable=True)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self, include_embedding: bool = False):
        """Convert profile to dictionary."""
        data = super().to_dict()
        data.update({
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "title": self.title,
            "bio": self.bio,
            "location": self.location,
            "industry_focus": self.industry_focus,
            "years_experience": self.years_experience,
            "has_embedding": bool(self.embedding),
        })
        if include_embedding:
            data["embedding"] = self.embedding
        return data

    def __repr__(self):
        return f"<ProfessionalProfile {self.full_name}>"
