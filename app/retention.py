"""
Verification token cleanup job. Run from cron:

  python -m app.retention [--hours N]

e.g. hourly: 0 * * * * cd /path/to/boardhole && .venv/bin/python -m app.retention
"""

import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.retention import run_retention

logger = logging.getLogger("app.retention")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete used or expired email verification tokens.")
    parser.add_argument(
        "--hours",
        type=int,
        default=None,
        help="Override RETENTION_HOURS for this run",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    if args.hours is not None:
        if args.hours < 1:
            parser.error("--hours must be at least 1")
        settings = settings.model_copy(update={"RETENTION_HOURS": args.hours})

    db = SessionLocal()
    try:
        deleted = run_retention(db, settings)
    except Exception:
        db.rollback()
        logger.exception("Token retention failed")
        return 1
    finally:
        db.close()
    logger.info("Token retention finished", extra={"tokens_deleted": deleted})
    return 0


if __name__ == "__main__":
    sys.exit(main())
