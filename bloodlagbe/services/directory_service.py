"""
Service helpers for the public donor directory and its admin curation.

Covers donor search with pagination, filter options, campus/group
maintenance and a user's own donor profile. Routes translate the exceptions
raised here into JSON responses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from http import HTTPStatus
from typing import Any, Mapping

from flask import current_app, has_app_context
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from bloodlagbe.importer.pipeline.normalize import clean_text
from bloodlagbe.importer.pipeline.resolve import DirectoryKind
from bloodlagbe.models import BloodGroup, Donation, Donor, db
from bloodlagbe.models.base import utcnow
from bloodlagbe.utils.permissions import AuthContext, require_admin, require_authenticated

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

PROFILE_REQUIRED_FIELDS = ("name", "bloodGroup", "contactNumber", "district", "city")


class DirectoryError(Exception):
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NameConflict(DirectoryError):
    status = HTTPStatus.CONFLICT


class EntityInUse(DirectoryError):
    status = HTTPStatus.CONFLICT


class EntityNotFound(DirectoryError):
    status = HTTPStatus.NOT_FOUND


class InvalidProfileData(DirectoryError):
    status = HTTPStatus.BAD_REQUEST


class InvalidDonationData(DirectoryError):
    status = HTTPStatus.BAD_REQUEST


def _coerce_positive_int(value: Any, *, fallback: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def _coerce_optional_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_availability(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token == "true":
            return True
        if token == "false":
            return False
    return None


def _parse_donation_date(value: Any) -> datetime | None:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        token = value.strip()
        if token.endswith(("Z", "z")):
            token = token[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(token)
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _coerce_blood_group(value: Any) -> BloodGroup | None:
    if isinstance(value, BloodGroup):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return BloodGroup(value.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class DonorFilters:
    """Validated donor search options."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    blood_group: BloodGroup | None = None
    campus_id: int | None = None
    group_id: int | None = None
    city: str | None = None
    district: str | None = None
    is_available: bool | None = None

    @classmethod
    def coerce(cls, params: Mapping[str, Any] | None = None, **overrides: Any) -> "DonorFilters":
        """
        Coerce query-string style input into ``DonorFilters``.

        Unknown or malformed values are ignored rather than rejected, matching
        how the directory page builds its query strings.
        """

        values = dict(params or {})
        values.update(overrides)

        default_size = DEFAULT_PAGE_SIZE
        max_size = MAX_PAGE_SIZE
        if has_app_context():
            default_size = current_app.config.get("DIRECTORY_PAGE_SIZE", DEFAULT_PAGE_SIZE)
            max_size = current_app.config.get("DIRECTORY_MAX_PAGE_SIZE", MAX_PAGE_SIZE)

        return cls(
            page=_coerce_positive_int(values.get("page"), fallback=DEFAULT_PAGE),
            page_size=min(_coerce_positive_int(values.get("limit"), fallback=default_size), max_size),
            blood_group=_coerce_blood_group(values.get("bloodGroup")),
            campus_id=_coerce_optional_int(values.get("campusId")),
            group_id=_coerce_optional_int(values.get("groupId")),
            city=clean_text(values.get("city")),
            district=clean_text(values.get("district")),
            is_available=_coerce_availability(values.get("availability")),
        )


@dataclass
class DonorSearchResult:
    donors: list[Donor]
    total_items: int
    filters: DonorFilters

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.filters.page_size) if self.total_items else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "donors": [donor.to_dict() for donor in self.donors],
            "pagination": {
                "totalItems": self.total_items,
                "currentPage": self.filters.page,
                "itemsPerPage": self.filters.page_size,
                "totalPages": self.total_pages,
            },
        }


class DirectoryService:
    """Query and curate the donor directory."""

    def __init__(self, session: Session | None = None, *, case_insensitive_names: bool | None = None) -> None:
        self.session = session or db.session
        if case_insensitive_names is None:
            case_insensitive_names = (
                current_app.config.get("NAME_MATCH_CASE_INSENSITIVE", True) if has_app_context() else True
            )
        self.case_insensitive_names = case_insensitive_names

    # ------------------------------------------------------------------
    # Public directory
    # ------------------------------------------------------------------
    def search_donors(self, filters: DonorFilters) -> DonorSearchResult:
        query = self.session.query(Donor)
        if filters.blood_group is not None:
            query = query.filter(Donor.blood_group == filters.blood_group)
        if filters.campus_id is not None:
            query = query.filter(Donor.campus_id == filters.campus_id)
        if filters.group_id is not None:
            query = query.filter(Donor.group_id == filters.group_id)
        if filters.city:
            query = query.filter(Donor.city.ilike(f"%{filters.city}%"))
        if filters.district:
            query = query.filter(Donor.district.ilike(f"%{filters.district}%"))
        if filters.is_available is not None:
            query = query.filter(Donor.is_available == filters.is_available)

        total = query.count()
        donors = (
            query.options(joinedload(Donor.campus), joinedload(Donor.group))
            .order_by(Donor.name.asc(), Donor.id.asc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
            .all()
        )
        return DonorSearchResult(donors=donors, total_items=total, filters=filters)

    def filter_options(self) -> dict[str, Any]:
        return {
            "campuses": [{"id": c.id, "name": c.name} for c in self._ordered(DirectoryKind.CAMPUS)],
            "groups": [{"id": g.id, "name": g.name} for g in self._ordered(DirectoryKind.GROUP)],
            "bloodGroups": [{"id": group.value, "name": group.label} for group in BloodGroup],
        }

    # ------------------------------------------------------------------
    # Campus / group curation
    # ------------------------------------------------------------------
    def list_entities(self, auth: AuthContext | None, kind: DirectoryKind) -> list[dict[str, Any]]:
        require_admin(auth)
        model = kind.model
        foreign_key = Donor.campus_id if kind is DirectoryKind.CAMPUS else Donor.group_id
        rows = (
            self.session.query(model, func.count(Donor.id))
            .outerjoin(Donor, foreign_key == model.id)
            .group_by(model.id)
            .order_by(model.name.asc())
            .all()
        )
        return [entity.to_dict(donor_count=count) for entity, count in rows]

    def create_entity(self, auth: AuthContext | None, kind: DirectoryKind, name: str):
        require_admin(auth)
        name = self._require_name(kind, name)
        model = kind.model
        if model.find_by_name(name, case_insensitive=self.case_insensitive_names, session=self.session):
            raise NameConflict(f"A {kind.value} named '{name}' already exists.")

        entity = model(name=name)
        self.session.add(entity)
        self.session.commit()
        self._log("Created %s %s (%r)", kind.value, entity.id, name)
        return entity

    def rename_entity(self, auth: AuthContext | None, kind: DirectoryKind, entity_id: int, name: str):
        require_admin(auth)
        entity = self._get_entity(kind, entity_id)
        name = self._require_name(kind, name)
        clash = kind.model.find_by_name(name, case_insensitive=self.case_insensitive_names, session=self.session)
        if clash is not None and clash.id != entity.id:
            raise NameConflict(f"Another {kind.value} named '{name}' already exists.")

        entity.name = name
        self.session.commit()
        self._log("Renamed %s %s to %r", kind.value, entity.id, name)
        return entity

    def delete_entity(self, auth: AuthContext | None, kind: DirectoryKind, entity_id: int) -> None:
        require_admin(auth)
        entity = self._get_entity(kind, entity_id)
        foreign_key = Donor.campus_id if kind is DirectoryKind.CAMPUS else Donor.group_id
        in_use = self.session.query(func.count(Donor.id)).filter(foreign_key == entity.id).scalar()
        if in_use:
            raise EntityInUse(
                f"Cannot delete {kind.value} '{entity.name}': it is referenced by {in_use} donor(s)."
            )

        self.session.delete(entity)
        self.session.commit()
        self._log("Deleted %s %s", kind.value, entity_id)

    # ------------------------------------------------------------------
    # Own donor profile
    # ------------------------------------------------------------------
    def get_own_profile(self, auth: AuthContext | None) -> Donor:
        auth = require_authenticated(auth)
        donor = self.session.query(Donor).filter(Donor.user_id == auth.user_id).one_or_none()
        if donor is None:
            raise EntityNotFound("Donor profile not found.")
        return donor

    def upsert_donor_profile(self, auth: AuthContext | None, payload: Mapping[str, Any]) -> tuple[Donor, bool]:
        """
        Create or update the caller's donor profile.

        Returns:
            ``(donor, created)``.
        """

        auth = require_authenticated(auth)
        if not isinstance(payload, Mapping):
            raise InvalidProfileData("Request body must be a JSON object.")

        missing = [field for field in PROFILE_REQUIRED_FIELDS if clean_text(payload.get(field)) is None]
        if not isinstance(payload.get("isAvailable"), bool):
            missing.append("isAvailable")
        if missing:
            raise InvalidProfileData(f"Missing or invalid fields: {', '.join(missing)}.")

        blood_group = _coerce_blood_group(payload.get("bloodGroup"))
        if blood_group is None:
            raise InvalidProfileData(f"Invalid blood group '{payload.get('bloodGroup')}'.")

        campus_id = self._optional_reference(DirectoryKind.CAMPUS, payload.get("campusId"))
        group_id = self._optional_reference(DirectoryKind.GROUP, payload.get("groupId"))

        values = {
            "name": clean_text(payload["name"]),
            "blood_group": blood_group,
            "contact_number": clean_text(payload["contactNumber"]),
            "email": clean_text(payload.get("email")),
            "district": clean_text(payload["district"]),
            "city": clean_text(payload["city"]),
            "is_available": payload["isAvailable"],
            "tagline": clean_text(payload.get("tagline")),
            "campus_id": campus_id,
            "group_id": group_id,
        }

        donor = self.session.query(Donor).filter(Donor.user_id == auth.user_id).one_or_none()
        created = donor is None
        if created:
            donor = Donor(user_id=auth.user_id, **values)
            self.session.add(donor)
        else:
            for key, value in values.items():
                setattr(donor, key, value)
        self.session.commit()
        self._log("%s donor profile %s for user %s", "Created" if created else "Updated", donor.id, auth.user_id)
        return donor, created

    def set_availability(self, auth: AuthContext | None, is_available: Any) -> Donor:
        if not isinstance(is_available, bool):
            raise InvalidProfileData("isAvailable must be a boolean.")
        donor = self.get_own_profile(auth)
        donor.is_available = is_available
        self.session.commit()
        return donor

    # ------------------------------------------------------------------
    # Donation history
    # ------------------------------------------------------------------
    def list_own_donations(self, auth: AuthContext | None) -> list[Donation]:
        """Donations on the caller's donor profile, most recent first. No profile means no history."""

        auth = require_authenticated(auth)
        donor = self.session.query(Donor).filter(Donor.user_id == auth.user_id).one_or_none()
        if donor is None:
            return []
        return (
            self.session.query(Donation)
            .filter(Donation.donor_id == donor.id)
            .order_by(Donation.donation_date.desc(), Donation.id.desc())
            .all()
        )

    def record_donation(self, auth: AuthContext | None, payload: Mapping[str, Any]) -> Donation:
        """
        Add a donation to the caller's history.

        Raises:
            InvalidDonationData: missing, malformed or future ``donationDate``.
            EntityNotFound: the caller has no donor profile yet.
        """

        auth = require_authenticated(auth)
        if not isinstance(payload, Mapping):
            raise InvalidDonationData("Request body must be a JSON object.")

        raw_date = payload.get("donationDate")
        if raw_date in (None, ""):
            raise InvalidDonationData("Missing required field: donationDate")
        donation_date = _parse_donation_date(raw_date)
        if donation_date is None:
            raise InvalidDonationData(
                "Invalid donationDate format. Please use ISO 8601 format (e.g., YYYY-MM-DD)."
            )
        if donation_date > utcnow():
            raise InvalidDonationData("Donation date cannot be in the future.")

        donor = self.session.query(Donor).filter(Donor.user_id == auth.user_id).one_or_none()
        if donor is None:
            raise EntityNotFound("Donor profile not found. You must have a donor profile to record donations.")

        donation = Donation(donor_id=donor.id, donation_date=donation_date, location=clean_text(payload.get("location")))
        self.session.add(donation)
        self.session.commit()
        self._log("Recorded donation %s for donor %s", donation.id, donor.id)
        return donation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _ordered(self, kind: DirectoryKind):
        model = kind.model
        return self.session.query(model).order_by(model.name.asc()).all()

    def _get_entity(self, kind: DirectoryKind, entity_id: Any):
        identifier = _coerce_optional_int(entity_id)
        entity = self.session.get(kind.model, identifier) if identifier is not None else None
        if entity is None:
            raise EntityNotFound(f"{kind.value.capitalize()} {entity_id} not found.")
        return entity

    def _optional_reference(self, kind: DirectoryKind, value: Any) -> int | None:
        if value in (None, ""):
            return None
        return self._get_entity(kind, value).id

    @staticmethod
    def _require_name(kind: DirectoryKind, name: Any) -> str:
        cleaned = clean_text(name) if isinstance(name, str) else None
        if not cleaned:
            raise DirectoryError(f"{kind.value.capitalize()} name is required.")
        return cleaned

    @staticmethod
    def _log(message: str, *args: Any) -> None:
        if has_app_context():
            current_app.logger.info(message, *args)
