# bloodlagbe/models/user.py

import enum

from flask import current_app
from flask_login import UserMixin
from sqlalchemy import Enum, func
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, db, isoformat


class UserRole(str, enum.Enum):
    """Roles understood by the authorization layer"""

    USER = "USER"
    ADMIN = "ADMIN"


class User(UserMixin, BaseModel):
    """Registered account; may own a donor profile and submitted lists"""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(Enum(UserRole, name="user_role_enum"), default=UserRole.USER, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    donor_profile = db.relationship("Donor", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def find_by_email(email):
        """Find user by email (case-insensitive) with error handling"""
        if not email:
            return None
        try:
            return User.query.filter(func.lower(User.email) == email.strip().lower()).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding user by email {email}: {str(e)}")
            return None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "createdAt": isoformat(self.created_at),
        }

    def to_summary(self):
        return {"id": self.id, "name": self.name, "email": self.email}
