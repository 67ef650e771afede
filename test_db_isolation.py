#!/usr/bin/env python3
"""
Script to verify that tests use isolated database and don't affect production data.
"""
import logging
import os
import sys

# Set testing environment
os.environ["TESTING"] = "1"

from smartplate.config import settings
from smartplate.db.database import SQLALCHEMY_DATABASE_URL, engine
from smartplate.logging_config import configure_logging

logger = logging.getLogger("smartplate.isolation")


def main():
    configure_logging(settings.log_level)
    logger.info("Configured database URL: %s", settings.database_url)
    logger.info("Engine database URL: %s", engine.url)

    if SQLALCHEMY_DATABASE_URL == "sqlite:///:memory:":
        logger.info("Tests are using an in-memory SQLite database; production data is safe")
        return 0
    logger.error("Tests are NOT using an isolated database: %s", SQLALCHEMY_DATABASE_URL)
    return 1


if __name__ == "__main__":
    sys.exit(main())
