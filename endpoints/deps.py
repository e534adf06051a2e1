from __future__ import annotations

from fastapi import HTTPException, Request

from jsondb import AsyncJsonDB, InvalidKeyError, InvalidValueError, ReservedCategoryError


def get_repo(request: Request) -> AsyncJsonDB:
    repo = getattr(request.app.state, "repo", None)
    if repo is None:
        raise HTTPException(status_code=503, detail="database is not initialized")
    return repo


BAD_REQUEST_ERRORS = (InvalidKeyError, InvalidValueError, ReservedCategoryError)


def bad_request(e: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))
