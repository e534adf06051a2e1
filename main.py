from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from jsondb import DuplicateFieldValueError, JsonDB, StoreError, hash_password
from jsondb.document import UNIQUE
from jsondb.paths import project_root
from settings import configure_logging, get_settings

logger = logging.getLogger("jsondb.demo")


def run(db: JsonDB) -> list[int]:
    """Declare username unique, then insert the same user twice. Returns the ids issued."""
    db.declare_constraint("user", UNIQUE, "username")

    user = {
        "username": "Alice",
        "password": hash_password("password123"),
    }

    issued: list[int] = []
    for _ in range(2):
        try:
            user_id = db.insert_with_auto_id("user", user)
        except DuplicateFieldValueError as e:
            logger.error("Error adding user: %s", e)
        else:
            logger.info("User added with ID: %d", user_id)
            issued.append(user_id)
    return issued


def main() -> int:
    load_dotenv(project_root() / "local.env")
    settings = get_settings()
    configure_logging(settings)

    try:
        db = JsonDB(settings=settings)
        run(db)
    except StoreError as e:
        logger.critical("Oops! %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
