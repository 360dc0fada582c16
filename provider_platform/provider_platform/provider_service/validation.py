"""
Payload validation helpers.

Route handlers validate request bodies explicitly with ``try_validate`` so
they can decide the order of checks (e.g. 401 on a missing token and 404 on
an unknown id before 400 on a bad payload). Failures are rendered as RFC 9110 style problem details.
"""
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

PROBLEM_TYPE = "https://tools.ietf.org/html/rfc9110#section-15.5.1"
PROBLEM_TITLE = "One or more validation errors occurred."
ROOT_FIELD = "$"

# Leading loc segments FastAPI adds to request validation errors
_REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts) or ROOT_FIELD


def collect_errors(errors: Sequence[dict]) -> Dict[str, List[str]]:
    """Group pydantic error entries by field name."""
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        grouped.setdefault(_field_name(error.get("loc", ())), []).append(error.get("msg", "Invalid value"))
    return grouped


def try_validate(model: Type[ModelT], payload: Any) -> Tuple[Optional[ModelT], Optional[Dict[str, List[str]]]]:
    """
    Validate ``payload`` against ``model``.

    Returns:
        ``(instance, None)`` on success, ``(None, errors)`` on failure where
        ``errors`` maps each offending field to its messages.
    """
    try:
        return model.model_validate(payload), None
    except ValidationError as exc:
        return None, collect_errors(exc.errors())


async def read_body(request: Request) -> bytes:
    """Raw request body, parsed later by ``try_validate_json``."""
    return await request.body()


def try_validate_json(model: Type[ModelT], raw: bytes) -> Tuple[Optional[ModelT], Optional[Dict[str, List[str]]]]:
    """Like ``try_validate`` but starts from the raw request body; an empty body is ``None``."""
    if not raw:
        return try_validate(model, None)
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        return None, {ROOT_FIELD: [f"JSON decode error: {exc}"]}
    return try_validate(model, payload)


def validation_problem(errors: Dict[str, List[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        media_type="application/problem+json",
        content={
            "type": PROBLEM_TYPE,
            "title": PROBLEM_TITLE,
            "status": status.HTTP_400_BAD_REQUEST,
            "errors": errors,
        },
    )


async def request_validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's own request validation failures as a 400 problem."""
    return validation_problem(collect_errors(exc.errors()))
