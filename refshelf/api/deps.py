# refshelf/api/deps.py
from fastapi import HTTPException, Request

from refshelf.services.identity import InvalidIdError, validate_id
from refshelf.services.store import ContentStore


def get_store(request: Request) -> ContentStore:
    """The ContentStore built during app startup."""
    return request.app.state.store


def checked_id(item_id: str) -> str:
    try:
        return validate_id(item_id)
    except InvalidIdError as e:
        raise HTTPException(400, str(e))
