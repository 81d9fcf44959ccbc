# bloodlagbe/models/directory.py

import enum

from sqlalchemy import Enum, Index, func, or_

from .base import BaseModel, db, isoformat


class BloodGroup(str, enum.Enum):
    """ABO group crossed with Rh factor"""

    A_POSITIVE = "A_POSITIVE"
    A_NEGATIVE = "A_NEGATIVE"
    B_POSITIVE = "B_POSITIVE"
    B_NEGATIVE = "B_NEGATIVE"
    AB_POSITIVE = "AB_POSITIVE"
    AB_NEGATIVE = "AB_NEGATIVE"
    O_POSITIVE = "O_POSITIVE"
    O_NEGATIVE = "O_NEGATIVE"

    @property
    def label(self):
        """Short display form, e.g. ``A+`` or ``O-``"""
        return self.value.replace("_POSITIVE", "+").replace("_NEGATIVE", "-")


class _NamedEntityMixin:
    """Lookup helpers shared by Campus and Group"""

    @classmethod
    def name_filter(cls, name, *, case_insensitive=True):
        if case_insensitive:
            # SQLite lower() folds ASCII only; fold both sides in SQL
            return or_(cls.name == name, func.lower(cls.name) == func.lower(name))
        return cls.name == name

    @classmethod
    def find_by_name(cls, name, *, case_insensitive=True, session=None):
        """Find by exact (or case-folded) name. Storage errors propagate to the caller."""
        session = session or db.session
        return session.query(cls).filter(cls.name_filter(name, case_insensitive=case_insensitive)).first()

    def to_dict(self, donor_count=None):
        payload = {
            "id": self.id,
            "name": self.name,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if donor_count is not None:
            payload["_count"] = {"donors": donor_count}
        return payload


class Campus(_NamedEntityMixin, BaseModel):
    """Educational institution a donor is affiliated with"""

    __tablename__ = "campuses"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)

    donors = db.relationship("Donor", back_populates="campus", passive_deletes="all")

    def __repr__(self):
        return f"<Campus {self.name}>"


class Group(_NamedEntityMixin, BaseModel):
    """Social or volunteer group a donor belongs to"""

    __tablename__ = "donor_groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)

    donors = db.relationship("Donor", back_populates="group", passive_deletes="all")

    def __repr__(self):
        return f"<Group {self.name}>"


class Donor(BaseModel):
    """Canonical donor profile listed in the public directory"""

    __tablename__ = "donors"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    blood_group = db.Column(Enum(BloodGroup, name="blood_group_enum"), nullable=False, index=True)
    # Dedup key for imports; uniqueness is checked at import time, not by a constraint
    contact_number = db.Column(db.String(50), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=True)
    district = db.Column(db.String(100), nullable=False, index=True)
    city = db.Column(db.String(100), nullable=False, index=True)
    is_available = db.Column(db.Boolean, default=True, nullable=False, index=True)
    tagline = db.Column(db.String(500), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=True)
    campus_id = db.Column(db.Integer, db.ForeignKey("campuses.id", ondelete="RESTRICT"), nullable=True, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey("donor_groups.id", ondelete="RESTRICT"), nullable=True, index=True)

    user = db.relationship("User", back_populates="donor_profile")
    campus = db.relationship("Campus", back_populates="donors")
    group = db.relationship("Group", back_populates="donors")
    donations = db.relationship(
        "Donation", back_populates="donor", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (Index("idx_donor_group_available", "blood_group", "is_available"),)

    def __repr__(self):
        return f"<Donor {self.name} ({self.blood_group.value})>"

    @staticmethod
    def find_by_contact_number(contact_number, session=None):
        """Exact match on the trimmed contact number"""
        session = session or db.session
        return session.query(Donor).filter(Donor.contact_number == contact_number.strip()).first()

    def to_dict(self, include_affiliations=True):
        payload = {
            "id": self.id,
            "name": self.name,
            "bloodGroup": self.blood_group.value,
            "contactNumber": self.contact_number,
            "email": self.email,
            "district": self.district,
            "city": self.city,
            "isAvailable": self.is_available,
            "tagline": self.tagline,
            "userId": self.user_id,
            "campusId": self.campus_id,
            "groupId": self.group_id,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if include_affiliations:
            payload["campus"] = {"id": self.campus.id, "name": self.campus.name} if self.campus else None
            payload["group"] = {"id": self.group.id, "name": self.group.name} if self.group else None
        return payload
