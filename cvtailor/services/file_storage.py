"""File storage utilities for generated CV PDFs."""

from __future__ import annotations

import time
from pathlib import Path

from cvtailor.core.config import get_settings
from cvtailor.core.logging import get_logger

logger = get_logger(__name__)


def uploads_dir() -> Path:
    """Directory PDFs are written to, relative to the working directory."""
    return Path(get_settings().uploads_dir)


def ensure_uploads_dir() -> Path:
    directory = resolve_path(str(uploads_dir()))
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def build_pdf_filename(profile_id: int) -> str:
    """Return cv_{profile_id}_{epoch_ms}.pdf."""
    timestamp = int(time.time() * 1000)
    return f"cv_{profile_id}_{timestamp}.pdf"


def relative_pdf_path(filename: str) -> str:
    """Path stored in the database for a PDF file name."""
    return (uploads_dir() / filename).as_posix()


def resolve_path(relative_path: str) -> Path:
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return Path.cwd() / path


def read_pdf(relative_path: str) -> bytes | None:
    """Return PDF bytes, or None when the file is gone."""
    full_path = resolve_path(relative_path)
    if not full_path.is_file():
        logger.warning("PDF file missing on disk: %s", full_path)
        return None
    return full_path.read_bytes()


def delete_pdf(relative_path: str | None) -> bool:
    """Remove a PDF file.

    Missing files and OS errors are logged, never raised.

    Returns:
        True if a file was deleted
    """
    if not relative_path:
        return False
    full_path = resolve_path(relative_path)
    if not full_path.exists():
        return False
    try:
        full_path.unlink()
    except OSError as exc:
        logger.error("Failed to delete PDF file %s: %s", full_path, exc)
        return False
    return True
