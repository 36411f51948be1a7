"""Create a user in the configured DB.

Usage:
  python scripts/create_user.py --email alice@example.com --username alice \
      --nickname Alice --password '...' --role admin

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from course_platform.auth.crud import create_user, public_user
from course_platform.config import load_config
from course_platform.db import connect, init_db
from course_platform.errors import ValidationError
from course_platform.models import ROLE_ADMIN, ROLE_NORMAL


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--username", required=True)
    ap.add_argument("--nickname", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", choices=["user", "admin"], default="user")
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    try:
        with connect(cfg.DB_DSN) as conn:
            row = create_user(
                conn,
                {
                    "email": args.email,
                    "username": args.username,
                    "nickname": args.nickname,
                    "password": args.password,
                    "role": ROLE_ADMIN if args.role == "admin" else ROLE_NORMAL,
                },
            )
    except ValidationError as e:
        for err in e.errors:
            print(f"error: {err}", file=sys.stderr)
        raise SystemExit(1)

    print("Created user:")
    print(public_user(row))


if __name__ == "__main__":
    main()
