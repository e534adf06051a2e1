from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from jsondb import AsyncJsonDB, DuplicateFieldValueError, JsonDB, check_password, hash_password
from jsondb.document import UNIQUE

from .deps import get_repo

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)

USER_CATEGORY = "user"


class Credentials(BaseModel):
    username: str
    password: str


def ensure_user_constraints(db: JsonDB) -> None:
    db.declare_constraint(USER_CATEGORY, UNIQUE, "username")


@router.post("/users", status_code=201)
async def register_user(body: Credentials, repo: AsyncJsonDB = Depends(get_repo)) -> dict[str, int]:
    username = body.username.strip()
    if not username:
        raise HTTPException(status_code=400, detail="username is required")
    try:
        user_id = await repo.insert_with_auto_id(
            USER_CATEGORY,
            {"username": username, "password": hash_password(body.password)},
        )
    except DuplicateFieldValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"id": user_id}


@router.post("/users/verify")
async def verify_user(body: Credentials, repo: AsyncJsonDB = Depends(get_repo)) -> dict[str, bool]:
    username = body.username.strip()
    for rec in (await repo.records(USER_CATEGORY)).values():
        if isinstance(rec, dict) and rec.get("username") == username:
            stored = rec.get("password")
            ok = isinstance(stored, str) and check_password(stored, body.password)
            if not ok:
                logger.info("Password check failed for user %s", username)
            return {"ok": ok}
    return {"ok": False}
