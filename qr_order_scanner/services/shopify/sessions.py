"""Session storage for shop access tokens (SQLAlchemy-backed)."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from qr_order_scanner.models.models import ShopSession, to_utc_naive

logger = logging.getLogger(__name__)


def offline_session_id(shop: str) -> str:
    return f"offline_{shop}"


def load_session(db: Session, session_id: str) -> Optional[ShopSession]:
    session = db.get(ShopSession, session_id)
    if session is None:
        return None
    if session.is_expired():
        logger.info(f"Session {session_id} has expired")
        return None
    return session


def load_offline_session(db: Session, shop: str) -> Optional[ShopSession]:
    return load_session(db, offline_session_id(shop))


def store_session(
    db: Session,
    shop: str,
    access_token: str,
    scope: Optional[str] = None,
    is_online: bool = False,
    session_id: Optional[str] = None,
    state: str = "",
    expires: Optional[datetime] = None,
    user_id: Optional[int] = None,
) -> ShopSession:
    """insert or update a session; offline id is used unless one is given."""
    sid = session_id or offline_session_id(shop)
    session = db.get(ShopSession, sid)
    if session is None:
        session = ShopSession(id=sid, shop=shop, access_token=access_token)
        db.add(session)

    session.shop = shop
    session.access_token = access_token
    session.scope = scope
    session.is_online = is_online
    session.state = state
    session.expires = to_utc_naive(expires) if expires else None
    session.user_id = user_id

    db.commit()
    db.refresh(session)
    logger.info(f"Stored session {sid}")
    return session


def delete_sessions_for_shop(db: Session, shop: str) -> int:
    result = db.execute(delete(ShopSession).where(ShopSession.shop == shop))
    db.commit()
    return result.rowcount or 0
