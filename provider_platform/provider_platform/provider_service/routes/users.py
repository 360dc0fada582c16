"""
Registration and login endpoints
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import SignInResult, create_access_token, create_user, password_sign_in
from ..db import get_db
from ..schemas import LoginUser, RegisterUser, TokenResponse, ValidationProblem
from ..utils.event_logger import log_auth_event
from ..validation import try_validate, validation_problem

logger = logging.getLogger(__name__)

router = APIRouter(tags=["User"])

USER_NOT_INFORMED = "User not informed"
BLOCKED_USER = "Blocked user"
INVALID_CREDENTIALS = "Username or password is invalid"


def _bad_request(content: Any) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


@router.post(
    "/register",
    response_model=TokenResponse,
    name="RegisterUser",
    responses={400: {"description": "Validation problem or list of identity errors"}},
)
def register(
    request: Request,
    payload: Any = Body(None, examples=[{"email": "user@example.com", "password": "Secret123!", "confirm_password": "Secret123!"}]),
    db: Session = Depends(get_db),
):
    if payload is None:
        return _bad_request(USER_NOT_INFORMED)

    data, errors = try_validate(RegisterUser, payload)
    if errors:
        return validation_problem(errors)

    try:
        user, identity_errors = create_user(db, data.email, data.password, email_confirmed=True)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to register user %s: %s", data.email, e)
        identity_errors = [{"code": "DefaultError", "description": "An unknown failure has occurred."}]
        user = None

    if identity_errors:
        log_auth_event("register_failure", data.email, request)
        return _bad_request(identity_errors)

    log_auth_event("register_success", user.email, request, user.id)
    return create_access_token(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    name="LoginUser",
    responses={400: {"description": "Invalid or blocked credentials", "model": ValidationProblem}},
)
def login(
    request: Request,
    payload: Any = Body(None, examples=[{"email": "user@example.com", "password": "Secret123!"}]),
    db: Session = Depends(get_db),
):
    if payload is None:
        return _bad_request(USER_NOT_INFORMED)

    data, errors = try_validate(LoginUser, payload)
    if errors:
        return validation_problem(errors)

    result, user = password_sign_in(db, data.email, data.password)
    user_id = user.id if user else None

    if result is SignInResult.LOCKED_OUT:
        log_auth_event("login_locked_out", data.email, request, user_id)
        return _bad_request(BLOCKED_USER)

    if result is not SignInResult.SUCCESS:
        log_auth_event("login_failure", data.email, request, user_id)
        return _bad_request(INVALID_CREDENTIALS)

    log_auth_event("login_success", user.email, request, user.id)
    return create_access_token(user)
