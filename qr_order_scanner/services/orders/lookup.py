from typing import Any, Dict, Optional

from qr_order_scanner.services.shopify.client import AdminGraphQLClient, to_order_gid
from qr_order_scanner.services.shopify.queries import GET_ORDER_QUERY


async def fetch_order(client: AdminGraphQLClient, order_id: str, query: str = GET_ORDER_QUERY) -> Optional[Dict[str, Any]]:
    """full order node, or None when the id does not resolve. GraphQL errors raise."""
    data = await client.query(query, {"id": to_order_gid(order_id)})
    return data.get("order")
