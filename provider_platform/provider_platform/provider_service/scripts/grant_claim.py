"""Grant claims and roles to an existing user.

Usage:
    python -m provider_platform.provider_platform.provider_service.scripts.grant_claim \
        user@example.com --claim DeleteProvider --role admin
"""
import argparse
import sys
from typing import List, Optional, Tuple

from ..auth import RESERVED_CLAIMS, add_user_claim, add_user_role, find_user_by_email
from ..db import SessionLocal, init_db
from ..utils.event_logger import configure_logging


def parse_claim(raw: str) -> Tuple[str, str]:
    """Split ``TYPE[=VALUE]``; the value defaults to an empty string."""
    claim_type, _, claim_value = raw.partition("=")
    if not claim_type:
        raise argparse.ArgumentTypeError(f"invalid claim '{raw}'")
    if claim_type in RESERVED_CLAIMS:
        raise argparse.ArgumentTypeError(f"claim type '{claim_type}' is reserved")
    return claim_type, claim_value


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Grant claims and roles to a Provider API user")
    parser.add_argument("email", help="Email of an existing user")
    parser.add_argument("--claim", action="append", default=[], type=parse_claim,
                        help="Claim as TYPE or TYPE=VALUE (repeatable)")
    parser.add_argument("--role", action="append", default=[], help="Role name (repeatable)")
    args = parser.parse_args(argv)

    if not args.claim and not args.role:
        parser.error("nothing to grant: pass --claim and/or --role")

    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        user = find_user_by_email(db, args.email)
        if not user:
            print(f"[ERROR] User not found: {args.email}", file=sys.stderr)
            return 1

        existing = {(c.claim_type, c.claim_value) for c in user.claims}
        for claim_type, claim_value in args.claim:
            if (claim_type, claim_value) in existing:
                print(f"[SKIP] {user.email} already has claim {claim_type}")
                continue
            add_user_claim(db, user, claim_type, claim_value)
            print(f"[OK] Granted claim {claim_type} to {user.email}")

        for role_name in args.role:
            add_user_role(db, user, role_name)
            print(f"[OK] Granted role {role_name} to {user.email}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
