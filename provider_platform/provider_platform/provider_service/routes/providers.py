"""
Provider CRUD endpoints
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_claims, require_claim
from ..db import get_db
from ..models import Provider
from ..schemas import ProviderIn, ProviderOut, ValidationProblem
from ..utils.event_logger import log_provider_event
from ..validation import read_body, try_validate_json, validation_problem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/provider", tags=["Provider"])

DELETE_PROVIDER_POLICY = "DeleteProvider"
SAVE_ERROR = "There was a problem saving information"

PROVIDER_EXAMPLE = {"name": "Acme Supplies", "document": "12345678000190"}

# The body is read as raw bytes after the auth dependency, so its schema is declared here
PROVIDER_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": ProviderIn.model_json_schema(),
                "example": PROVIDER_EXAMPLE,
            }
        },
    }
}


def _find_provider(db: Session, provider_id: str) -> Optional[Provider]:
    try:
        key = str(uuid.UUID(provider_id))
    except ValueError:
        return None
    return db.get(Provider, key)


def _save_error(provider_id: str, subject: Optional[str]) -> JSONResponse:
    log_provider_event("save_failed", provider_id, subject)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=SAVE_ERROR)


@router.get("", response_model=List[ProviderOut], name="GetProvider")
def list_providers(db: Session = Depends(get_db)):
    return db.query(Provider).all()


@router.get(
    "/{provider_id}",
    response_model=ProviderOut,
    name="GetProviderById",
    responses={404: {"description": "Provider not found"}},
)
def get_provider(provider_id: str, db: Session = Depends(get_db)):
    provider = _find_provider(db, provider_id)
    if provider is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    return provider


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ProviderOut,
    name="PostProvider",
    responses={400: {"description": "Validation or save error", "model": ValidationProblem}},
    openapi_extra=PROVIDER_BODY,
)
def create_provider(
    claims: dict = Depends(get_current_claims),
    raw_body: bytes = Depends(read_body),
    db: Session = Depends(get_db),
):
    data, errors = try_validate_json(ProviderIn, raw_body)
    if errors:
        return validation_problem(errors)

    provider_key = str(data.id) if data.id else str(uuid.uuid4())
    provider = Provider(id=provider_key, name=data.name, document=data.document)
    try:
        db.add(provider)
        db.commit()
        db.refresh(provider)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create provider %s: %s", provider_key, e)
        return _save_error(provider_key, claims.get("sub"))

    log_provider_event("created", provider_key, claims.get("sub"))
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ProviderOut.model_validate(provider).model_dump(),
        headers={"Location": f"/provider/{provider_key}"},
    )


@router.put(
    "/{provider_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    name="PutProvider",
    responses={
        400: {"description": "Validation or save error", "model": ValidationProblem},
        404: {"description": "Provider not found"},
    },
    openapi_extra=PROVIDER_BODY,
)
def replace_provider(
    provider_id: str,
    claims: dict = Depends(get_current_claims),
    raw_body: bytes = Depends(read_body),
    db: Session = Depends(get_db),
):
    existing = _find_provider(db, provider_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    # Commits expire the instance, so keep the key as a plain value
    provider_key = existing.id

    data, errors = try_validate_json(ProviderIn, raw_body)
    if errors:
        return validation_problem(errors)

    # Full overwrite; the id in the path wins over any id in the body
    try:
        affected = (
            db.query(Provider)
            .filter(Provider.id == provider_key)
            .update({Provider.name: data.name, Provider.document: data.document}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to replace provider %s: %s", provider_key, e)
        return _save_error(provider_key, claims.get("sub"))

    if affected == 0:
        return _save_error(provider_key, claims.get("sub"))

    log_provider_event("replaced", provider_key, claims.get("sub"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{provider_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    name="DeleteProvider",
    responses={
        400: {"description": "Save error"},
        403: {"description": "Token lacks the DeleteProvider claim"},
        404: {"description": "Provider not found"},
    },
)
def delete_provider(
    provider_id: str,
    claims: dict = Depends(require_claim(DELETE_PROVIDER_POLICY)),
    db: Session = Depends(get_db),
):
    existing = _find_provider(db, provider_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    # The deleted row cannot be reloaded after commit
    provider_key = existing.id

    try:
        affected = (
            db.query(Provider)
            .filter(Provider.id == provider_key)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to delete provider %s: %s", provider_key, e)
        return _save_error(provider_key, claims.get("sub"))

    if affected == 0:
        return _save_error(provider_key, claims.get("sub"))

    log_provider_event("deleted", provider_key, claims.get("sub"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
