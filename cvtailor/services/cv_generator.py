"""CV generation pipeline and generated-CV records."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from cvtailor.core.logging import get_logger
from cvtailor.db.tables import Cv, Profile
from cvtailor.models.cv import GenerateCvRequest
from cvtailor.models.profile import ProfileRead
from cvtailor.services.cv_parser import CvParseError, parse_cv_json
from cvtailor.services.file_storage import (
    build_pdf_filename,
    delete_pdf,
    read_pdf,
    relative_pdf_path,
    resolve_path,
)
from cvtailor.services.llm_client import get_cv_as_json
from cvtailor.services.pdf_renderer import render_pdf

logger = get_logger(__name__)


class ProfileNotFoundError(LookupError):
    """The profile a CV was requested for does not exist."""


class CvNotFoundError(LookupError):
    """No CV record with the given id."""


def _profile_payload(profile: Profile) -> str:
    """Serialise a profile for the prompt, without ids and timestamps."""
    data: dict[str, Any] = ProfileRead.model_validate(profile).model_dump(
        mode="json", exclude={"id", "profile_name", "created_at", "updated_at"}
    )
    return json.dumps(data, ensure_ascii=False, indent=2)


def generate_cv(db: Session, request: GenerateCvRequest) -> tuple[Cv, bytes]:
    """Generate a tailored CV: profile → LLM → JSON → PDF → file + record.

    Returns:
        The stored CV record and the PDF bytes

    Raises:
        ProfileNotFoundError: If the profile does not exist
        LLMError: If the LLM call fails or returns nothing
        CvParseError: If the LLM reply is not a JSON object
    """
    profile = db.get(Profile, request.profile_id)
    if profile is None:
        raise ProfileNotFoundError(f"Profile {request.profile_id} not found.")

    logger.info("Generating CV for profile %d", profile.id)
    raw = get_cv_as_json(request.job_description, _profile_payload(profile))

    try:
        cv_data = parse_cv_json(raw)
    except CvParseError as e:
        logger.error("Profile %d: unparseable LLM reply - %s", profile.id, e)
        raise

    relative_path = relative_pdf_path(build_pdf_filename(profile.id))
    full_path = render_pdf(cv_data, resolve_path(relative_path))
    pdf_bytes = full_path.read_bytes()
    logger.info("Profile %d: wrote %d byte PDF to %s", profile.id, len(pdf_bytes), relative_path)

    cv = Cv(
        profile_id=profile.id,
        job_description=request.job_description,
        pdf_path=relative_path,
        cv_data=cv_data,
    )
    db.add(cv)
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_pdf(relative_path)
        logger.error("Profile %d: failed to store CV record, removed %s", profile.id, relative_path)
        raise
    db.refresh(cv)
    logger.info("Profile %d: stored CV %d", profile.id, cv.id)
    return cv, pdf_bytes


def list_cvs(db: Session) -> list[Cv]:
    stmt = select(Cv).options(joinedload(Cv.profile)).order_by(Cv.created_at.desc(), Cv.id.desc())
    return list(db.scalars(stmt))


def get_cv(db: Session, cv_id: int) -> Cv | None:
    stmt = select(Cv).options(joinedload(Cv.profile)).where(Cv.id == cv_id)
    return db.scalars(stmt).first()


def list_cvs_for_profile(db: Session, profile_id: int) -> list[Cv]:
    stmt = (
        select(Cv)
        .where(Cv.profile_id == profile_id)
        .order_by(Cv.created_at.desc(), Cv.id.desc())
    )
    return list(db.scalars(stmt))


def get_pdf_bytes(db: Session, cv_id: int) -> bytes | None:
    """PDF content of a CV, or None if the record or its file is missing."""
    cv = db.get(Cv, cv_id)
    if cv is None:
        return None
    return read_pdf(cv.pdf_path)


def delete_cv(db: Session, cv_id: int) -> Cv:
    cv = get_cv(db, cv_id)
    if cv is None:
        raise CvNotFoundError(f"CV {cv_id} not found.")

    if not delete_pdf(cv.pdf_path):
        logger.warning("CV %d: no PDF file to delete at %s", cv_id, cv.pdf_path)
    db.delete(cv)
    db.commit()
    logger.info("Deleted CV %d", cv_id)
    return cv
