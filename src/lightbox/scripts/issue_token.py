"""Print a signed admin token for use when ADMIN_AUTH_ENABLED is on."""
from __future__ import annotations

import argparse
import logging

from lightbox.core.security import ADMIN_SUBJECT, create_access_token
from lightbox.core.settings import settings

logger = logging.getLogger("lightbox.issue_token")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[issue_token] %(message)s")

    if not settings.admin_auth_enabled:
        logger.warning("ADMIN_AUTH_ENABLED is off; the API will not ask for this token")
    print(create_access_token(ADMIN_SUBJECT, expires_minutes=args.minutes))


if __name__ == "__main__":
    main()
