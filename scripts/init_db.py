"""
Create the database tables and optionally load demo data.

Usage:
    python scripts/init_db.py            # create tables only
    python scripts/init_db.py --seed     # create tables and insert demo rows

Seeding is skipped when the projects table already has rows.
"""
import argparse
from datetime import date, timedelta

from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.models.registry import Project, Task

DEMO_PROJECTS = [
    {
        "name": "E-commerce Platform",
        "description": "Full e-commerce platform with a web storefront and REST backend",
        "status": "active",
        "start_date": date(2024, 1, 15),
        "end_date": date(2024, 6, 30),
        "tasks": [
            ("Set up development environment", "completed", "high", date(2024, 1, 20)),
            ("Build user API", "in_progress", "high", 1),
            ("Create product listing UI", "pending", "medium", 7),
        ],
    },
    {
        "name": "Payments REST API",
        "description": "Payment processing API integrated with several gateways",
        "status": "active",
        "start_date": date(2024, 2, 1),
        "end_date": date(2024, 4, 15),
        "tasks": [
            ("Integrate payment gateway", "in_progress", "critical", date(2024, 2, 15)),
            ("Implement notification webhook", "pending", "high", 7),
        ],
    },
    {
        "name": "Analytics Dashboard",
        "description": "Real-time metrics and reporting dashboard",
        "status": "completed",
        "start_date": date(2023, 10, 1),
        "end_date": date(2023, 12, 31),
        "tasks": [
            ("Design chart components", "completed", "low", date(2023, 11, 1)),
        ],
    },
]


def _due(value):
    # ints are offsets in days from today
    if isinstance(value, int):
        return date.today() + timedelta(days=value)
    return value


def seed(db):
    if db.query(Project).count():
        print('Projects already present, skipping seed')
        return

    for demo in DEMO_PROJECTS:
        fields = dict(demo)
        tasks = fields.pop("tasks")
        project = Project(**fields)
        project.tasks = [
            Task(title=title, status=status, priority=priority, due_date=_due(due))
            for title, status, priority, due in tasks
        ]
        db.add(project)
    db.commit()
    print('Inserted', len(DEMO_PROJECTS), 'demo projects')


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument('--seed', action='store_true', help='insert demo projects and tasks')
    args = parser.parse_args()

    print('Database:', settings.database_url)
    Base.metadata.create_all(bind=engine)
    print('Tables created:', ', '.join(sorted(Base.metadata.tables)))

    if args.seed:
        db = SessionLocal()
        try:
            seed(db)
        finally:
            db.close()


if __name__ == '__main__':
    main()
