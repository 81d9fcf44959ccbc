"""
Donor import package: submission review, direct CSV upload and CLI wiring.
"""

from __future__ import annotations

from flask import Flask

from .cli import donors_cli
from .pipeline import SubmissionService, upload_donors_from_csv

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "SubmissionService",
    "upload_donors_from_csv",
]


def init_importer(app: Flask) -> None:
    """Register importer CLI commands once per app."""

    state = app.extensions.setdefault(IMPORTER_EXTENSION_KEY, {"cli_registered": False})
    if state["cli_registered"]:
        return
    app.cli.add_command(donors_cli)
    state["cli_registered"] = True
    app.logger.debug("Importer CLI registered")
