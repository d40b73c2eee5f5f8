from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cvtailor.core.database import get_db
from cvtailor.models.profile import ProfileCreate, ProfileRead, ProfileSummary, ProfileUpdate
from cvtailor.services import profiles as profile_service

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


def _not_found(profile_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Profile {profile_id} not found.",
    )


@router.post("", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
def create_profile(payload: ProfileCreate, db: Session = Depends(get_db)) -> ProfileRead:
    try:
        profile = profile_service.create_profile(db, payload)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ProfileRead.model_validate(profile)


@router.get("", response_model=list[ProfileSummary])
def list_profiles(db: Session = Depends(get_db)) -> list[ProfileSummary]:
    return [ProfileSummary.model_validate(p) for p in profile_service.list_profiles(db)]


@router.get("/{profile_id}", response_model=ProfileRead)
def get_profile(profile_id: int, db: Session = Depends(get_db)) -> ProfileRead:
    profile = profile_service.get_profile(db, profile_id)
    if profile is None:
        raise _not_found(profile_id)
    return ProfileRead.model_validate(profile)


@router.patch("/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: int, payload: ProfileUpdate, db: Session = Depends(get_db)
) -> ProfileRead:
    """Update only the fields sent in the request body."""
    try:
        profile = profile_service.update_profile(db, profile_id, payload)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    if profile is None:
        raise _not_found(profile_id)
    return ProfileRead.model_validate(profile)


@router.delete("/{profile_id}", response_model=ProfileRead)
def delete_profile(profile_id: int, db: Session = Depends(get_db)) -> ProfileRead:
    """Delete a profile together with its generated CVs and their PDF files."""
    profile = profile_service.delete_profile(db, profile_id)
    if profile is None:
        raise _not_found(profile_id)
    return ProfileRead.model_validate(profile)
