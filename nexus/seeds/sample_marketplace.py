from nexus import db
from nexus.models import JobPosting, JobStatus, ProfessionalProfile


SAMPLE_PROFESSIONALS = [
    {
        "first_name": "Layla",
        "last_name": "Haddad",
        "title": "Leadership Coach",
        "bio": "Executive coaching for senior leaders, bilingual Arabic and English, "
               "12 years in the UAE working with government entities.",
        "location": "Dubai",
        "industry_focus": "government",
        "years_experience": 12,
    },
    {
        "first_name": "James",
        "last_name": "Whitfield",
        "title": "Data Science Trainer",
        "bio": "Delivers online and hybrid workshops on machine learning and AI for fintech teams.",
        "location": "London",
        "industry_focus": "technology",
        "years_experience": 8,
    },
    {
        "first_name": "Omar",
        "last_name": "Al Mansoori",
        "title": "Islamic Finance Consultant",
        "bio": "Emirati advisor on sharia compliance and islamic banking, face-to-face workshops "
               "for banks across the Gulf.",
        "location": "Abu Dhabi",
        "industry_focus": "finance",
        "years_experience": 15,
    },
    {
        "first_name": "Priya",
        "last_name": "Raman",
        "title": "Hospitality Trainer",
        "bio": "Cross-cultural customer service training for hospitality and tourism teams, "
               "international experience in the Middle East.",
        "location": "Sharjah",
        "industry_focus": "tourism",
        "years_experience": 6,
    },
]

SAMPLE_JOBS = [
    {
        "title": "Senior Leadership Coach",
        "description": "Seeking bilingual coach for government sector leadership programme.",
        "requirements": "Arabic and English, experience coaching public sector executives",
        "location": "Dubai",
        "job_type": "coaching",
        "region": "dubai",
    },
    {
        "title": "AI Workshop Facilitator",
        "description": "Virtual workshop series on AI adoption for a fintech scale-up.",
        "requirements": "Hands-on machine learning, remote delivery",
        "location": "Remote",
        "job_type": "workshop",
        "region": None,
    },
    {
        "title": "Islamic Banking Trainer",
        "description": "In-person training on sharia compliance for islamic banking staff.",
        "requirements": "Islamic finance certification, Arabic preferred",
        "location": "Abu Dhabi",
        "job_type": "training",
        "region": "abu_dhabi",
    },
    {
        "title": "Hotel Service Excellence Trainer",
        "description": "Hospitality service training ahead of the tourism season.",
        "requirements": "Customer service training, multicultural teams",
        "location": "Sharjah",
        "job_type": "training",
        "region": "sharjah",
        "status": JobStatus.CLOSED.value,
    },
]


def seed_sample_marketplace():
    """
    Seed sample professionals and jobs.

    Skips seeding when profiles already exist.

    Returns:
        Tuple of (profiles, jobs) created
    """
    print("Seeding sample marketplace data...")

    if db.session.query(ProfessionalProfile.id).first() is not None:
        print("  ⏭️  Profiles already exist, skipping")
        return [], []

    profiles = [ProfessionalProfile(**data) for data in SAMPLE_PROFESSIONALS]
    jobs = [
        JobPosting(status=data.get("status", JobStatus.OPEN.value), **{k: v for k, v in data.items() if k != "status"})
        for data in SAMPLE_JOBS
    ]

    db.session.add_all(profiles + jobs)
    db.session.commit()

    print(f"  ✅ Created {len(profiles)} professionals and {len(jobs)} jobs")
    return profiles, jobs
