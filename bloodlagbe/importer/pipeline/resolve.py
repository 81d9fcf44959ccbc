"""
Find-or-create resolution of campus and group names for one import batch.
"""

from __future__ import annotations

import enum

from flask import current_app, has_app_context
from sqlalchemy.orm import Session

from bloodlagbe.models import Campus, Group, db


class DirectoryKind(str, enum.Enum):
    CAMPUS = "campus"
    GROUP = "group"

    @property
    def model(self):
        return Campus if self is DirectoryKind.CAMPUS else Group


class DirectoryResolver:
    """Resolve free-text names to Campus/Group ids, creating entities on first use.

    One resolver instance is meant to live for exactly one batch: its cache is
    keyed by the lower-cased trimmed name so repeated spellings across rows hit
    the store at most once. Storage errors propagate to the caller.
    """

    def __init__(self, session: Session | None = None, *, case_insensitive: bool = True) -> None:
        self.session = session or db.session
        self.case_insensitive = case_insensitive
        self._cache: dict[tuple[DirectoryKind, str], int] = {}
        self.created: dict[DirectoryKind, int] = {kind: 0 for kind in DirectoryKind}

    def _cache_key(self, kind: DirectoryKind, name: str) -> tuple[DirectoryKind, str]:
        return kind, name.lower() if self.case_insensitive else name

    def resolve(self, kind: DirectoryKind, name: str | None) -> int | None:
        """Return the id for ``name``; blank names resolve to None."""

        if name is None:
            return None
        name = name.strip()
        if not name:
            return None

        key = self._cache_key(kind, name)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        model = kind.model
        entity = model.find_by_name(name, case_insensitive=self.case_insensitive, session=self.session)
        if entity is None:
            entity = model(name=name)
            self.session.add(entity)
            self.session.flush()
            self.created[kind] += 1
            if has_app_context():
                current_app.logger.info("Created %s %r (id=%s) during import", kind.value, name, entity.id)

        self._cache[key] = entity.id
        return entity.id
