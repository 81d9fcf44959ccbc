# scripts/init_database.py

"""
Database initialization script.
Creates all tables and, optionally, campuses and groups listed in the
DEFAULT_CAMPUSES / DEFAULT_GROUPS environment variables (comma-separated).
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from bloodlagbe.importer.pipeline import DirectoryKind, DirectoryResolver
from bloodlagbe.models import db


def _names_from_env(variable):
    raw = os.environ.get(variable, "")
    return [name.strip() for name in raw.split(",") if name.strip()]


def create_default_entities():
    """Create the campuses and groups named in the environment, skipping existing ones"""
    resolver = DirectoryResolver(db.session, case_insensitive=app.config.get("NAME_MATCH_CASE_INSENSITIVE", True))
    for kind, variable in ((DirectoryKind.CAMPUS, "DEFAULT_CAMPUSES"), (DirectoryKind.GROUP, "DEFAULT_GROUPS")):
        for name in _names_from_env(variable):
            resolver.resolve(kind, name)
    db.session.commit()
    return resolver.created


def init_database():
    """Initialize database with all default data"""
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        print(f"Database tables created: {', '.join(sorted(db.metadata.tables))}")

        created = create_default_entities()
        print(f"Created {created[DirectoryKind.CAMPUS]} campuses and {created[DirectoryKind.GROUP]} groups")

        print("\nDatabase initialization complete!")
        print("\nNext steps:")
        print("  1. Create an admin user: python scripts/create_admin.py")
        print("  2. Import donors: flask donors upload-csv donors.csv --admin-email <admin email>")


if __name__ == "__main__":
    init_database()
