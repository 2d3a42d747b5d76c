"""
Issue a bearer token for local development.

Login and registration belong to the identity service; this mints the same
HS256 JWT the API expects, signed with the configured SECRET_KEY.

Usage examples:
  python scripts/issue_token.py alice
  python scripts/issue_token.py runner-1 --role executor --minutes 1440
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Ensure we can import the scriptflow package when running as a script
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scriptflow.core.security import EXECUTOR_ROLE, USER_ROLE, create_access_token  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue a development bearer token")
    parser.add_argument("subject", help="User id placed in the token's sub claim")
    parser.add_argument("--role", choices=[USER_ROLE, EXECUTOR_ROLE], default=USER_ROLE, help="Token role")
    parser.add_argument("--minutes", type=int, default=None, help="Lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES")
    return parser


def main(argv: Optional[List[str]] = None) -> str:
    args = build_parser().parse_args(argv)
    token = create_access_token(args.subject, role=args.role, expires_minutes=args.minutes)
    print(token)
    return token


if __name__ == "__main__":
    main()
