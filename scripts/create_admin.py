# scripts/create_admin.py

import os
import sys
from getpass import getpass

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from werkzeug.security import generate_password_hash

from app import app
from bloodlagbe.models import User, UserRole


def create_admin():
    with app.app_context():
        name = input("Enter name: ").strip()
        email = input("Enter email: ").strip().lower()

        if not name or not email:
            print("Error: Name and email are required.")
            sys.exit(1)

        existing = User.find_by_email(email)
        if existing and existing.is_admin:
            print("Error: An admin with this email already exists.")
            sys.exit(1)

        if existing:
            success, error = existing.safe_update(role=UserRole.ADMIN)
            if not success:
                print(f"Error promoting account: {error}")
                sys.exit(1)
            print(f"Promoted existing account {existing.email} to admin.")
            return

        password = getpass("Enter password: ")
        password2 = getpass("Confirm password: ")

        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

        if len(password) < 6:
            print("Error: Password must be at least 6 characters.")
            sys.exit(1)

        admin_user, error = User.safe_create(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=UserRole.ADMIN,
            is_active=True,
        )

        if error:
            print(f"Error creating admin account: {error}")
            sys.exit(1)

        print("Admin account created successfully!")
        print(f"   Name: {admin_user.name}")
        print(f"   Email: {admin_user.email}")
        print(f"   Role: {admin_user.role.value}")


if __name__ == "__main__":
    create_admin()
