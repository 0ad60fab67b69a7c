#!/usr/bin/env python3
"""
Script to precompute embeddings for professional profiles that have none.

Profiles with a stored embedding skip the provider call during matching.

Usage:
    python scripts/generate_profile_embeddings.py

Can also be called via the management CLI:
    python manage.py embed-profiles
"""
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from nexus import create_app, db
from nexus.models import ProfessionalProfile
from nexus.services.embedding_service import EmbeddingService
from nexus.services.matching.stores import profile_to_entity


def generate_missing_profile_embeddings(embedding_service: EmbeddingService = None):
    """Generate embeddings for all profiles missing one. Requires an app context."""
    stmt = select(ProfessionalProfile).where(ProfessionalProfile.embedding.is_(None))
    profiles = list(db.session.scalars(stmt).all())

    if not profiles:
        print("No profiles found without embeddings")
        return 0, 0

    print(f"Found {len(profiles)} profiles without embeddings")

    embedding_service = embedding_service or EmbeddingService()
    success_count = 0
    error_count = 0

    for profile in profiles:
        print(f"\n[{profile.id}] {profile.full_name} - {profile.title}")

        text = profile_to_entity(profile).embedding_text()
        if not text:
            error_count += 1
            print("    ✗ Profile has no title, bio or industry focus")
            continue

        try:
            profile.embedding = embedding_service.generate_embedding(text)
            db.session.commit()
            success_count += 1
            print(f"    ✓ Embedding generated (length: {len(profile.embedding)})")
        except Exception as e:
            error_count += 1
            print(f"    ✗ Error: {e}")
            db.session.rollback()

    print(f"\n{'='*50}")
    print(f"Summary: {success_count} successful, {error_count} failed")
    print(f"{'='*50}")
    return success_count, error_count


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        generate_missing_profile_embeddings()
