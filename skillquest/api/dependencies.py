import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from skillquest.database.storage import InMemoryStorage
from skillquest.grading import Grader
from skillquest.utils.config_loader import ServerConfig

logger = logging.getLogger(__name__)


def get_storage(request: Request) -> InMemoryStorage:
    return request.app.state.storage


def get_grader(request: Request) -> Grader:
    return request.app.state.grader


def get_server_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


async def optional_user(
    request: Request,
    storage: InMemoryStorage = Depends(get_storage),
    config: ServerConfig = Depends(get_server_config),
) -> Optional[str]:
    """Resolve the session cookie to a user id; anonymous callers get None."""
    token = request.cookies.get(config.session_cookie)
    return storage.user_for_session(token)


async def require_user(user_id: Optional[str] = Depends(optional_user)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id


async def require_club_member(
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
    config: ServerConfig = Depends(get_server_config),
) -> str:
    user = storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    is_member = (
        user.membership_tier in config.club_tiers
        and user.membership_status == "active"
        and (user.membership_expires_at is None or user.membership_expires_at > datetime.now(timezone.utc))
    )
    if not is_member:
        logger.info("Club gate denied user=%s tier=%s", user_id, user.membership_tier)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Club membership required", "requiresUpgrade": True},
        )
    return user_id
