"""Service layer for the donor directory."""

from .directory_service import (
    DirectoryError,
    DirectoryService,
    DonorFilters,
    DonorSearchResult,
    EntityInUse,
    EntityNotFound,
    InvalidDonationData,
    InvalidProfileData,
    NameConflict,
)

__all__ = [
    "DirectoryError",
    "DirectoryService",
    "DonorFilters",
    "DonorSearchResult",
    "EntityInUse",
    "EntityNotFound",
    "InvalidDonationData",
    "InvalidProfileData",
    "NameConflict",
]
