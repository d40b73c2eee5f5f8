"""Profile CRUD operations."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from cvtailor.core.logging import get_logger
from cvtailor.db.tables import Profile
from cvtailor.models.profile import ProfileCreate, ProfileUpdate
from cvtailor.services.file_storage import delete_pdf

logger = get_logger(__name__)

DUPLICATE_NAME_MESSAGE = "Profile with this name already exists"


def _name_taken(db: Session, profile_name: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(Profile.id).where(Profile.profile_name == profile_name)
    if exclude_id is not None:
        stmt = stmt.where(Profile.id != exclude_id)
    return db.scalars(stmt).first() is not None


def _commit(db: Session) -> None:
    """Commit, turning a unique-constraint race into the duplicate-name error."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValueError(DUPLICATE_NAME_MESSAGE) from exc


def create_profile(db: Session, data: ProfileCreate) -> Profile:
    if _name_taken(db, data.profile_name):
        raise ValueError(DUPLICATE_NAME_MESSAGE)

    profile = Profile(**data.model_dump(mode="json"))
    db.add(profile)
    _commit(db)
    db.refresh(profile)
    logger.info("Created profile %d (%s)", profile.id, profile.profile_name)
    return profile


def list_profiles(db: Session) -> list[Profile]:
    return list(db.scalars(select(Profile).order_by(Profile.id)))


def get_profile(db: Session, profile_id: int) -> Profile | None:
    return db.get(Profile, profile_id)


def update_profile(db: Session, profile_id: int, data: ProfileUpdate) -> Profile | None:
    """Apply the fields present in data; returns None for an unknown id."""
    profile = db.get(Profile, profile_id)
    if profile is None:
        return None

    changes = data.model_dump(mode="json", exclude_unset=True)
    # Explicit nulls on required or list columns are ignored
    for field in ("profile_name", "email", "skills", "links", "education",
                  "experiences", "projects", "activities", "volunteering"):
        if field in changes and changes[field] is None:
            del changes[field]

    new_name = changes.get("profile_name")
    if new_name and new_name != profile.profile_name and _name_taken(db, new_name, exclude_id=profile_id):
        raise ValueError(DUPLICATE_NAME_MESSAGE)

    for field, value in changes.items():
        setattr(profile, field, value)
    _commit(db)
    db.refresh(profile)
    logger.info("Updated profile %d fields=%s", profile_id, sorted(changes))
    return profile


def delete_profile(db: Session, profile_id: int) -> Profile | None:
    """Delete a profile, its CV rows and their PDF files."""
    profile = db.scalars(
        select(Profile).options(selectinload(Profile.cvs)).where(Profile.id == profile_id)
    ).first()
    if profile is None:
        return None

    for cv in profile.cvs:
        if delete_pdf(cv.pdf_path):
            logger.info("Deleted PDF %s of profile %d", cv.pdf_path, profile_id)

    db.delete(profile)
    db.commit()
    logger.info("Deleted profile %d with %d CVs", profile_id, len(profile.cvs))
    return profile
