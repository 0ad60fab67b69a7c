"""Management CLI commands."""

import asyncio
import sys

from flask import Flask
from nexus import create_app, db, get_matching_engine


def init_db(app: Flask) -> None:
    """Create all database tables."""
    with app.app_context():
        db.create_all()
        app.logger.info("Database initialized successfully")


def drop_db(app: Flask, confirm: bool = False) -> None:
    """Drop all database tables."""
    if not confirm:
        response = input("Are you sure you want to drop all tables? [y/N]: ")
        if response.lower() != "y":
            print("Operation cancelled")
            return

    with app.app_context():
        db.drop_all()
        app.logger.info("Database dropped successfully")


def seed_db(app: Flask) -> None:
    """Seed sample professionals and jobs."""
    from nexus.seeds.sample_marketplace import seed_sample_marketplace

    with app.app_context():
        seed_sample_marketplace()


def embed_profiles(app: Flask) -> None:
    """Precompute embeddings for profiles that have none."""
    from scripts.generate_profile_embeddings import generate_missing_profile_embeddings

    with app.app_context():
        generate_missing_profile_embeddings()


def print_matches(matches) -> None:
    """Print ranked matches as a table."""
    if not matches:
        print("No matches found")
        return

    for rank, match in enumerate(matches, start=1):
        candidate = match.candidate
        score = match.score
        print(
            f"{rank:>2}. [{candidate.id}] {candidate.title[:40]:40} "
            f"{int(round(score.overall_score * 100)):>3}%  {match.match_strength:12} ({score.source})"
        )
        for note in score.recommendations:
            print(f"      - {note}")


def match_jobs(app: Flask, professional_id: int, limit: int = 5) -> None:
    """Show the best open jobs for a professional."""
    with app.app_context():
        engine = get_matching_engine()
        print_matches(asyncio.run(engine.match_jobs_for_professional(professional_id, limit=limit)))


def match_professionals(app: Flask, job_id: int, limit: int = 5) -> None:
    """Show the best professionals for a job."""
    with app.app_context():
        engine = get_matching_engine()
        print_matches(asyncio.run(engine.match_professionals_for_job(job_id, limit=limit)))


def show_config(app: Flask) -> None:
    """Print the environment settings."""
    from config.settings import settings

    settings.display_config()


if __name__ == "__main__":
    app = create_app()

    commands = {
        "init": lambda: init_db(app),
        "drop": lambda: drop_db(app),
        "seed": lambda: seed_db(app),
        "embed-profiles": lambda: embed_profiles(app),
        "match-jobs": lambda: match_jobs(
            app,
            professional_id=int(sys.argv[2]),
            limit=int(sys.argv[3]) if len(sys.argv) > 3 else 5,
        ),
        "match-professionals": lambda: match_professionals(
            app,
            job_id=int(sys.argv[2]),
            limit=int(sys.argv[3]) if len(sys.argv) > 3 else 5,
        ),
        "config": lambda: show_config(app),
    }

    if len(sys.argv) < 2:
        print("Usage: python manage.py <command>")
        print("\nCommands:")
        print("  init                - Create database tables")
        print("  drop                - Drop all tables")
        print("  seed                - Seed sample professionals and jobs")
        print("  embed-profiles      - Precompute missing profile embeddings")
        print("  config              - Show environment settings")
        print("\nMatching Commands:")
        print("  match-jobs          - Rank open jobs for a professional")
        print("                        Usage: match-jobs <professional_id> [limit]")
        print("  match-professionals - Rank professionals for a job")
        print("                        Usage: match-professionals <job_id> [limit]")
        sys.exit(1)

    command = sys.argv[1]
    if command not in commands:
        print(f"Unknown command: {command}")
        sys.exit(1)

    if command in ("match-jobs", "match-professionals") and len(sys.argv) < 3:
        print(f"Usage: python manage.py {command} <id> [limit]")
        sys.exit(1)

    commands[command]()
