"""Print a development bearer token.

    python scripts/issue_token.py <user_id> [--email someone@example.com] [--minutes 60]
"""

import argparse
import os
import sys
from datetime import timedelta

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from casinoapi.core.security import create_access_token  # noqa: E402


def main(argv=None):
    parser = argparse.ArgumentParser(description="Issue a development access token")
    parser.add_argument("user_id")
    parser.add_argument("--email", default=None)
    parser.add_argument("--minutes", type=int, default=None)
    args = parser.parse_args(argv)

    claims = {"sub": args.user_id}
    if args.email:
        claims["email"] = args.email
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(claims, expires))


if __name__ == "__main__":
    main()
