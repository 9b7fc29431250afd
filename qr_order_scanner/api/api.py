from fastapi import APIRouter

from qr_order_scanner.api.routers import diagnostics as diagnostics_router
from qr_order_scanner.api.routers import order_actions as order_actions_router
from qr_order_scanner.api.routers import orders as orders_router
from qr_order_scanner.api.routers import pages as pages_router

# JSON API consumed by the POS extension
router = APIRouter()

router.include_router(orders_router.router)
router.include_router(order_actions_router.router)

# debug / test harness routes
router.include_router(diagnostics_router.router)

# monitoring pages
pages = APIRouter()
pages.include_router(pages_router.router)
