from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import BaseModel

from jsondb import AsyncJsonDB, DeleteOutcome, DuplicateFieldValueError, record_key
from jsondb.document import UNIQUE

from .deps import BAD_REQUEST_ERRORS, bad_request, get_repo

router = APIRouter(tags=["records"])
logger = logging.getLogger(__name__)


class ConstraintRequest(BaseModel):
    field: str
    constraint_type: str = UNIQUE


@router.post("/records/{category}", status_code=201)
async def insert_record(
    category: str,
    record: dict[str, Any] = Body(...),
    repo: AsyncJsonDB = Depends(get_repo),
) -> dict[str, int]:
    try:
        new_id = await repo.insert_with_auto_id(category, record)
    except DuplicateFieldValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    return {"id": new_id}


@router.get("/records/{category}")
async def list_records(category: str, repo: AsyncJsonDB = Depends(get_repo)) -> dict[str, Any]:
    try:
        records = await repo.records(category)
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    return {"records": records}


@router.get("/records/{category}/{record_id}")
async def get_record(category: str, record_id: str, repo: AsyncJsonDB = Depends(get_repo)) -> Any:
    key = record_key(category, record_id)
    try:
        value = await repo.get(key)
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    if value is None:
        raise HTTPException(status_code=404, detail=f"{key} not found")
    return value


@router.put("/records/{category}/{record_id}")
async def put_record(
    category: str,
    record_id: str,
    value: Any = Body(...),
    repo: AsyncJsonDB = Depends(get_repo),
) -> dict[str, str]:
    key = record_key(category, record_id)
    try:
        await repo.put(key, value)
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    return {"key": key}


@router.delete("/records/{category}/{record_id}", status_code=204)
async def delete_record(category: str, record_id: str, repo: AsyncJsonDB = Depends(get_repo)) -> Response:
    try:
        outcome = await repo.delete(record_key(category, record_id))
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    if outcome is DeleteOutcome.MISSING_CATEGORY:
        raise HTTPException(status_code=404, detail=f"category '{category}' does not exist")
    if outcome is DeleteOutcome.MISSING_ID:
        raise HTTPException(status_code=404, detail=f"id '{record_id}' does not exist in category '{category}'")
    return Response(status_code=204)


@router.get("/constraints/{category}")
async def get_constraints(category: str, repo: AsyncJsonDB = Depends(get_repo)) -> dict[str, Any]:
    return {"constraints": await repo.constraints(category)}


@router.post("/constraints/{category}")
async def declare_constraint(
    category: str,
    body: ConstraintRequest,
    repo: AsyncJsonDB = Depends(get_repo),
) -> dict[str, bool]:
    try:
        changed = await repo.declare_constraint(category, body.constraint_type, body.field)
    except BAD_REQUEST_ERRORS as e:
        raise bad_request(e) from e
    return {"changed": changed}
