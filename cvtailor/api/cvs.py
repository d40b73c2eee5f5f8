from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from cvtailor.core.database import get_db
from cvtailor.models.cv import CvRecord, GenerateCvRequest
from cvtailor.services import cv_generator
from cvtailor.services.cv_generator import CvNotFoundError, ProfileNotFoundError
from cvtailor.services.cv_parser import CvParseError
from cvtailor.services.llm_client import LLMError

router = APIRouter(prefix="/v1/cvs", tags=["cvs"])

PDF_MEDIA_TYPE = "application/pdf"


def _pdf_response(content: bytes, filename: str, *, status_code: int = status.HTTP_200_OK,
                  headers: dict[str, str] | None = None) -> Response:
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        status_code=status_code,
        headers={"Content-Disposition": f"attachment; filename={filename}", **(headers or {})},
    )


@router.post(
    "/generate",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    responses={201: {"content": {PDF_MEDIA_TYPE: {}}}},
)
def generate_cv(payload: GenerateCvRequest, db: Session = Depends(get_db)) -> Response:
    """Generate a CV PDF tailored to the job description.

    The new record's id is returned in the X-CV-Id header.
    """
    try:
        cv, pdf_bytes = cv_generator.generate_cv(db, payload)
    except ProfileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except (LLMError, CvParseError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to generate CV data: {exc}",
        ) from exc

    return _pdf_response(
        pdf_bytes,
        f"cv_{payload.profile_id}.pdf",
        status_code=status.HTTP_201_CREATED,
        headers={"X-CV-Id": str(cv.id)},
    )


@router.get("", response_model=list[CvRecord])
def list_cvs(db: Session = Depends(get_db)) -> list[CvRecord]:
    return [CvRecord.model_validate(cv) for cv in cv_generator.list_cvs(db)]


@router.get("/profile/{profile_id}", response_model=list[CvRecord])
def list_cvs_for_profile(profile_id: int, db: Session = Depends(get_db)) -> list[CvRecord]:
    return [CvRecord.model_validate(cv) for cv in cv_generator.list_cvs_for_profile(db, profile_id)]


@router.get("/{cv_id}", response_model=CvRecord)
def get_cv(cv_id: int, db: Session = Depends(get_db)) -> CvRecord:
    cv = cv_generator.get_cv(db, cv_id)
    if cv is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"CV {cv_id} not found.",
        )
    return CvRecord.model_validate(cv)


@router.get(
    "/{cv_id}/download",
    response_class=Response,
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}},
)
def download_cv(cv_id: int, db: Session = Depends(get_db)) -> Response:
    pdf_bytes = cv_generator.get_pdf_bytes(db, cv_id)
    if pdf_bytes is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="CV PDF not found.",
        )
    return _pdf_response(pdf_bytes, f"cv_{cv_id}.pdf")


@router.delete("/{cv_id}", response_model=CvRecord)
def delete_cv(cv_id: int, db: Session = Depends(get_db)) -> CvRecord:
    try:
        cv = cv_generator.delete_cv(db, cv_id)
    except CvNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return CvRecord.model_validate(cv)
