"""
Event logger utility for authentication and provider events.
"""
from typing import Optional
from fastapi import Request
import sys
import logging
import os

from ..config import settings

logger = logging.getLogger(__name__)


ALLOWED_AUTH_EVENT_TYPES = {
    "register_success",
    "register_failure",
    "login_success",
    "login_failure",
    "login_locked_out",
}

ALLOWED_PROVIDER_ACTIONS = {
    "created",
    "replaced",
    "deleted",
    "save_failed",
}


def configure_logging() -> None:
    """Configure stdout logging, plus a file handler when LOG_DIR is set."""
    handlers = [logging.StreamHandler(sys.stdout)]

    # Try to add file handler, but continue without it if directory creation fails
    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "provider_service.log")))
        except OSError as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s:%(message)s",
        handlers=handlers
    )


def client_ip(request: Request) -> Optional[str]:
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    if not ip_address and request.headers.get("x-forwarded-for"):
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip_address = request.headers.get("x-forwarded-for").split(",")[0].strip()
    return ip_address


def log_auth_event(
    event_type: str,
    email: str,
    request: Request,
    user_id: Optional[str] = None
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of ALLOWED_AUTH_EVENT_TYPES
        email: Email the request was made for
        request: FastAPI Request object
        user_id: Id of the matching user, when one exists

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_AUTH_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_AUTH_EVENT_TYPES))}"
        )

    logger.info(
        "AUTH %s user_id=%s email=%s ip=%s user_agent=%s",
        event_type, user_id, email, client_ip(request), request.headers.get("user-agent")
    )


def log_provider_event(action: str, provider_id: str, subject: Optional[str] = None) -> None:
    """
    Log a write against the provider store.

    Raises:
        ValueError: If action is invalid
    """
    if action not in ALLOWED_PROVIDER_ACTIONS:
        raise ValueError(
            f"Invalid action '{action}'. Must be one of: {', '.join(sorted(ALLOWED_PROVIDER_ACTIONS))}"
        )

    level = logging.WARNING if action == "save_failed" else logging.INFO
    logger.log(level, "PROVIDER %s id=%s sub=%s", action, provider_id, subject)
