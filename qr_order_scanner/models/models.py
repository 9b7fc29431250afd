from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Text, BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from qr_order_scanner.db.base import Base


# helpers
def to_utc_naive(value: datetime) -> datetime:
    """columns hold naive UTC; aware values are converted, naive ones are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def now() -> datetime:
    return to_utc_naive(datetime.now(timezone.utc))


class ShopSession(Base):
    """a shop's API session; offline sessions are keyed `offline_<shop>`."""

    __tablename__ = "shop_sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    shop: Mapped[str] = mapped_column(String(255), index=True)
    state: Mapped[str] = mapped_column(String(255), default="")
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    scope: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    access_token: Mapped[str] = mapped_column(String(255))
    user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)

    def is_expired(self, at: datetime | None = None) -> bool:
        if self.expires is None:
            return False
        return self.expires <= (to_utc_naive(at) if at else now())

    def __repr__(self) -> str:
        return f"<ShopSession {self.id} online={self.is_online}>"
