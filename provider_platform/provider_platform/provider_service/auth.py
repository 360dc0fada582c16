from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional, Tuple
import logging
import uuid
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .models import Role, User, UserClaim

logger = logging.getLogger(__name__)

# Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False, description="Enter the JWT token issued by /login or /register")

ROLE_CLAIM = "role"
# Claims set by create_access_token itself
RESERVED_CLAIMS = frozenset({"sub", "email", "jti", "nbf", "iat", "exp", "iss", "aud"})
PASSWORD_MIN_LENGTH = 6


class SignInResult(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    LOCKED_OUT = "locked_out"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def password_policy_errors(password: str) -> List[dict]:
    """
    Check a password against the account password policy.

    Returns:
        List of ``{"code", "description"}`` errors, empty when the password is acceptable.
    """
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append({
            "code": "PasswordTooShort",
            "description": f"Passwords must be at least {PASSWORD_MIN_LENGTH} characters."
        })
    if password.isalnum():
        errors.append({
            "code": "PasswordRequiresNonAlphanumeric",
            "description": "Passwords must have at least one non alphanumeric character."
        })
    if not any(c.isdigit() for c in password):
        errors.append({
            "code": "PasswordRequiresDigit",
            "description": "Passwords must have at least one digit ('0'-'9')."
        })
    if not any(c.islower() for c in password):
        errors.append({
            "code": "PasswordRequiresLower",
            "description": "Passwords must have at least one lowercase ('a'-'z')."
        })
    if not any(c.isupper() for c in password):
        errors.append({
            "code": "PasswordRequiresUpper",
            "description": "Passwords must have at least one uppercase ('A'-'Z')."
        })
    return errors


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, email: str, password: str, email_confirmed: bool = True) -> Tuple[Optional[User], List[dict]]:
    """
    Create a credential record.

    Returns:
        Tuple of (user, errors). ``user`` is None when ``errors`` is not empty.
    """
    email = email.lower()
    errors = []
    if find_user_by_email(db, email):
        errors.append({"code": "DuplicateUserName", "description": f"Username '{email}' is already taken."})
    errors.extend(password_policy_errors(password))
    if errors:
        return None, errors

    user = User(
        user_name=email,
        email=email,
        email_confirmed=email_confirmed,
        password=hash_password(password)
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, []


def password_sign_in(db: Session, email: str, password: str) -> Tuple[SignInResult, Optional[User]]:
    """
    Verify credentials, counting failures towards a lockout.

    The failure that reaches LOCKOUT_MAX_FAILED_ATTEMPTS locks the account for
    LOCKOUT_MINUTES and is itself reported as LOCKED_OUT.
    """
    user = find_user_by_email(db, email)
    if not user:
        return SignInResult.FAILED, None

    now = datetime.utcnow()
    if user.is_locked_out(now):
        return SignInResult.LOCKED_OUT, user

    if verify_password(password, user.password):
        if user.access_failed_count or user.lockout_end:
            user.access_failed_count = 0
            user.lockout_end = None
            db.commit()
        return SignInResult.SUCCESS, user

    if not user.lockout_enabled:
        return SignInResult.FAILED, user

    # Increment in SQL so concurrent failures are all counted
    db.query(User).filter(User.id == user.id).update(
        {User.access_failed_count: User.access_failed_count + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(user)
    if user.access_failed_count >= settings.LOCKOUT_MAX_FAILED_ATTEMPTS:
        user.lockout_end = now + timedelta(minutes=settings.LOCKOUT_MINUTES)
        user.access_failed_count = 0
        db.commit()
        logger.warning("Account locked: user_id=%s until=%s", user.id, user.lockout_end.isoformat())
        return SignInResult.LOCKED_OUT, user

    return SignInResult.FAILED, user


def user_claims(user: User) -> List[dict]:
    """User claims followed by one role claim per role."""
    claims = [{"type": c.claim_type, "value": c.claim_value} for c in user.claims]
    claims.extend({"type": ROLE_CLAIM, "value": role.name} for role in user.roles)
    return claims


def create_access_token(user: User) -> dict:
    """
    Issue a signed token for ``user``.

    Returns:
        Token response dict with access_token, token_type, expires_in and user_token.
    """
    now = datetime.now(timezone.utc)
    expires_in = settings.JWT_EXPIRATION_HOURS * 3600
    claims = user_claims(user)

    payload = {
        "sub": user.id,
        "email": user.email,
        "jti": str(uuid.uuid4()),
        "nbf": now,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    for claim in claims:
        if claim["type"] in RESERVED_CLAIMS:
            logger.warning("Skipping reserved claim %s for user_id=%s", claim["type"], user.id)
            continue
        existing = payload.get(claim["type"])
        if claim["type"] not in payload:
            payload[claim["type"]] = claim["value"] if claim["type"] != ROLE_CLAIM else [claim["value"]]
        elif isinstance(existing, list):
            existing.append(claim["value"])
        else:
            payload[claim["type"]] = [existing, claim["value"]]

    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": expires_in,
        "user_token": {"id": user.id, "email": user.email, "claims": claims},
    }


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_claim(claim_type: str) -> Callable[..., dict]:
    """
    Build a dependency enforcing a claim-based policy: the token must carry ``claim_type``.
    """
    def policy(claims: dict = Depends(get_current_claims)) -> dict:
        if claim_type not in claims:
            logger.info("Policy %s denied for sub=%s", claim_type, claims.get("sub"))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return claims

    return policy


def add_user_claim(db: Session, user: User, claim_type: str, claim_value: str = "") -> UserClaim:
    if claim_type in RESERVED_CLAIMS:
        raise ValueError(f"Claim type '{claim_type}' is reserved")
    claim = UserClaim(user_id=user.id, claim_type=claim_type, claim_value=claim_value)
    db.add(claim)
    db.commit()
    db.refresh(user)
    return claim


def add_user_role(db: Session, user: User, role_name: str) -> Role:
    role = db.query(Role).filter(Role.name == role_name).first()
    if not role:
        role = Role(name=role_name)
        db.add(role)
    if role not in user.roles:
        user.roles.append(role)
    db.commit()
    db.refresh(user)
    return role
