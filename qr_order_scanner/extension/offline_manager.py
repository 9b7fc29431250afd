"""
Offline cache screen.

Inert scaffolding: it starts from two mock cached orders, keeps everything in
memory and "syncs" by waiting. Nothing is persisted and no API is called.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from qr_order_scanner.extension.components import Button, Screen, Section, Text, row
from qr_order_scanner.extension.toast import Toast
from qr_order_scanner.schemas.orders import CachedOrder, SyncStatus
from qr_order_scanner.services.orders.formatting import iso_timestamp

logger = logging.getLogger(__name__)

SYNC_LOG_SIZE = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OfflineManager:
    def __init__(
        self,
        toast: Toast,
        on_back: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        sync_delay: float = 1.0,
        connection_test_delay: float = 2.0,
    ):
        self.toast = toast
        self.on_back = on_back
        self.clock = clock
        self.sleep = sleep
        self.sync_delay = sync_delay
        self.connection_test_delay = connection_test_delay

        self.cached_orders: List[CachedOrder] = []
        self.sync_status = SyncStatus()
        self.is_syncing = False
        self.sync_log: List[str] = []

        self.load_cached_data()
        self.check_online_status()

    def _now_iso(self, offset: timedelta = timedelta(0)) -> str:
        return iso_timestamp(self.clock() - offset)

    def add_sync_log(self, message: str) -> None:
        stamp = self.clock().strftime("%Y/%m/%d %H:%M:%S")
        self.sync_log = [f"[{stamp}] {message}"] + self.sync_log[: SYNC_LOG_SIZE - 1]

    def update_sync_status(self, **updates) -> None:
        self.sync_status = self.sync_status.model_copy(update=updates)

    def _refresh_counts(self) -> None:
        self.update_sync_status(
            totalCached=len(self.cached_orders),
            pendingSync=len([o for o in self.cached_orders if not o.lastSynced]),
        )

    def load_cached_data(self) -> None:
        self.cached_orders = [
            CachedOrder(
                id="1001",
                orderNumber="#1001",
                customer="Taro Tanaka",
                total="¥5,400",
                status="Preparing shipment",
                cachedAt=self._now_iso(timedelta(hours=1)),
                lastSynced=self._now_iso(timedelta(minutes=30)),
            ),
            CachedOrder(
                id="1002",
                orderNumber="#1002",
                customer="Hanako Sato",
                total="¥12,800",
                status="Delivered",
                cachedAt=self._now_iso(timedelta(hours=2)),
            ),
        ]
        synced = sorted((o.lastSynced for o in self.cached_orders if o.lastSynced), reverse=True)
        self._refresh_counts()
        self.update_sync_status(lastSync=synced[0] if synced else None)
        self.add_sync_log("📊 Loaded cached data")

    def check_online_status(self) -> None:
        # no network probe here; the host reports connectivity through set_online
        self.update_sync_status(isOnline=True)
        self.add_sync_log("🌐 Network status: online")

    def set_online(self, online: bool) -> None:
        self.update_sync_status(isOnline=online)
        if online:
            self.add_sync_log("✅ Back online")
            self.toast.show("🌐 Back online")
        else:
            self.add_sync_log("⚠️ Switched to offline mode")
            self.toast.show("📴 Switched to offline mode")

    def cache_order(self, order: Dict[str, Any]) -> CachedOrder:
        cached = CachedOrder(
            id=str(order["id"]),
            orderNumber=order["orderNumber"],
            customer=order["customer"],
            total=order["total"],
            status=order["status"],
            cachedAt=self._now_iso(),
        )
        self.cached_orders = [cached] + [o for o in self.cached_orders if o.id != cached.id]
        self._refresh_counts()
        self.add_sync_log(f"📦 Cached order {cached.orderNumber}")
        return cached

    async def sync_data(self) -> int:
        if not self.sync_status.isOnline:
            self.toast.show("❌ Cannot sync while offline")
            return 0

        self.is_syncing = True
        self.add_sync_log("🔄 Sync started")
        try:
            pending = [o for o in self.cached_orders if not o.lastSynced]
            for order in pending:
                await self.sleep(self.sync_delay)
                order.lastSynced = self._now_iso()
                self.add_sync_log(f"✅ Synced order {order.orderNumber}")

            self.update_sync_status(lastSync=self._now_iso(), pendingSync=0)
            self.toast.show(f"✅ Synced {len(pending)} orders")
            self.add_sync_log(f"🎉 Sync finished ({len(pending)} orders)")
            return len(pending)
        finally:
            self.is_syncing = False

    def clear_cache(self) -> None:
        self.cached_orders = []
        self.sync_log = []
        self.update_sync_status(totalCached=0, pendingSync=0, lastSync=None)
        self.toast.show("🗑️ Cache cleared")
        self.add_sync_log("🗑️ Cache cleared")

    async def test_connection(self) -> bool:
        self.add_sync_log("🔍 Testing network connection...")
        await self.sleep(self.connection_test_delay)
        self.update_sync_status(isOnline=True)
        self.toast.show("✅ Network connection OK")
        self.add_sync_log("✅ Connection test passed")
        return True

    def back(self) -> None:
        if self.on_back:
            self.on_back()

    def render(self) -> Screen:
        status = self.sync_status
        return Screen(
            name="offline-manager",
            title="Offline manager",
            sections=[
                Section(
                    title="Sync status",
                    children=[
                        row("Network", "🟢 Online" if status.isOnline else "🔴 Offline"),
                        row("Cached orders", f"{status.totalCached}"),
                        row("Pending sync", f"{status.pendingSync}"),
                        row("Last sync", status.lastSync or "Never"),
                    ],
                ),
                Section(
                    title="Cached orders",
                    children=[
                        Text(text=f"{o.orderNumber} {o.customer} {o.total} ({'synced' if o.lastSynced else 'pending'})")
                        for o in self.cached_orders
                    ]
                    or [Text(text="No cached orders")],
                ),
                Section(
                    title="Actions",
                    children=[
                        Button(title="Sync now", action="sync_data", disabled=self.is_syncing or not status.isOnline),
                        Button(title="Test connection", action="test_connection"),
                        Button(title="Clear cache", action="clear_cache"),
                    ],
                ),
                Section(title="Sync log", children=[Text(text=entry) for entry in self.sync_log[:10]]),
                Section(children=[Button(title="Back", action="back")]),
            ],
        )
