"""Server-side sessions for the shop owner realm.

The browser only holds an opaque session id in an http-only cookie; the
session itself lives in the ``sessions`` collection and is removed on logout.
"""
from datetime import datetime, timedelta
import os
import secrets
from typing import Optional

from beanie import PydanticObjectId
from dotenv import load_dotenv
from fastapi import Depends, HTTPException, Request, Response, status

from models import OwnerSession, ShopOwner

load_dotenv()

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sid")
SESSION_TTL = timedelta(days=int(os.getenv("SESSION_TTL_DAYS", 7)))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"


def cookie_flags() -> dict:
    # cross-site cookies need SameSite=None, which browsers only accept with Secure
    return {"httponly": True, "secure": COOKIE_SECURE, "samesite": "none" if COOKIE_SECURE else "lax"}


class SessionIdentity:
    """The shop owner bound to the current request's session."""

    def __init__(self, session: OwnerSession):
        self.session = session

    def current_principal_id(self) -> PydanticObjectId:
        return self.session.owner_id


async def start_session(response: Response, owner: ShopOwner) -> OwnerSession:
    session = OwnerSession(
        session_id=secrets.token_urlsafe(32),
        owner_id=owner.id,
        is_verified=owner.is_verified,
        expires_at=datetime.utcnow() + SESSION_TTL,
    )
    await session.insert()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        session.session_id,
        max_age=int(SESSION_TTL.total_seconds()),
        **cookie_flags(),
    )
    return session


async def end_session(request: Request, response: Response) -> None:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if session_id:
        await OwnerSession.find(OwnerSession.session_id == session_id).delete()
    response.delete_cookie(SESSION_COOKIE_NAME, path="/", **cookie_flags())


async def optional_owner_session(request: Request) -> Optional[SessionIdentity]:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_id:
        return None

    session = await OwnerSession.find_one(OwnerSession.session_id == session_id)
    if session is None:
        return None
    if session.expires_at <= datetime.utcnow():
        await session.delete()
        return None
    return SessionIdentity(session)


async def require_owner_session(identity: Optional[SessionIdentity] = Depends(optional_owner_session)) -> SessionIdentity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return identity
