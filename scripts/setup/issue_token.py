# scripts/setup/issue_token.py
"""
Mint a development bearer token signed with JWT_SECRET.
Usage: python scripts/setup/issue_token.py user-123 [--admin] [--hours 24]
"""

import sys
import os
import argparse
from datetime import datetime, timedelta, timezone
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.security import create_access_token


def main():
    parser = argparse.ArgumentParser(description="Issue a dev JWT for the rental API")
    parser.add_argument("user_id")
    parser.add_argument("--admin", action="store_true", help="Grant the admin flag")
    parser.add_argument("--hours", type=int, default=24, help="Token lifetime")
    args = parser.parse_args()

    expires = datetime.now(timezone.utc) + timedelta(hours=args.hours)
    token = create_access_token(args.user_id, is_admin=args.admin, expires_at=expires)
    print(f"Authorization: Bearer {token}")


if __name__ == "__main__":
    main()
