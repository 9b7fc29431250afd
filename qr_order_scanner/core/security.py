import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from qr_order_scanner.core.config import Settings, get_settings
from qr_order_scanner.db.session import get_db
from qr_order_scanner.models.models import ShopSession
from qr_order_scanner.services.shopify.client import AdminGraphQLClient
from qr_order_scanner.services.shopify.sessions import load_offline_session, offline_session_id

logger = logging.getLogger(__name__)

# session tokens are optional: custom-app mode falls back to static credentials
bearer_scheme = HTTPBearer(auto_error=False)


class AdminContext:
    """authenticated shop session plus a GraphQL client bound to it."""

    def __init__(self, session: ShopSession, admin: AdminGraphQLClient):
        self.session = session
        self.admin = admin

    @property
    def shop(self) -> str:
        return self.session.shop


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_session_token(token: str, settings: Settings) -> Dict[str, Any]:
    if not settings.SHOPIFY_API_SECRET or not settings.SHOPIFY_API_KEY:
        raise _unauthorized("Session tokens are not configured")
    try:
        return jwt.decode(
            token,
            settings.SHOPIFY_API_SECRET,
            algorithms=["HS256"],
            audience=settings.SHOPIFY_API_KEY,
        )
    except JWTError as e:
        raise _unauthorized("Invalid session token") from e


def shop_from_claims(claims: Dict[str, Any]) -> str:
    dest = claims.get("dest") or ""
    shop = urlparse(dest).netloc or dest
    if not shop:
        raise _unauthorized("Session token has no shop")
    return shop


def static_session(settings: Settings) -> ShopSession:
    """transient offline session built from SHOPIFY_SHOP / SHOPIFY_ACCESS_TOKEN (never persisted)."""
    return ShopSession(
        id=offline_session_id(settings.SHOPIFY_SHOP),
        shop=settings.SHOPIFY_SHOP,
        state="",
        is_online=False,
        scope=settings.SCOPES,
        access_token=settings.SHOPIFY_ACCESS_TOKEN,
    )


async def resolve_admin_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
    settings: Settings,
) -> AdminContext:
    if credentials is not None:
        claims = decode_session_token(credentials.credentials, settings)
        shop = shop_from_claims(claims)
        session = load_offline_session(db, shop)
        if session is None:
            logger.warning(f"No offline session stored for {shop}")
            raise _unauthorized(f"App is not installed on {shop}")
    elif settings.has_static_credentials:
        session = static_session(settings)
    else:
        raise _unauthorized("Missing session token")

    admin = AdminGraphQLClient(
        shop=session.shop,
        access_token=session.access_token,
        api_version=settings.SHOPIFY_API_VERSION,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        transport=getattr(request.app.state, "upstream_transport", None),
    )
    return AdminContext(session, admin)


async def authenticate_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AdminContext:
    return await resolve_admin_context(request, credentials, db, settings)
