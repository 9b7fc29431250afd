from datetime import date, timedelta
from typing import Dict, List, Optional

FILTER_LABELS = {
    "all": "All orders",
    "today": "Today's orders",
    "week": "Last 7 days",
    "pending": "Unfulfilled",
    "fulfilled": "Fulfilled",
    "paid": "Paid",
    "unpaid": "Unpaid",
}

_STATIC_FILTERS = {
    "pending": "fulfillment_status:unfulfilled",
    "fulfilled": "fulfillment_status:fulfilled",
    "paid": "financial_status:paid",
    "unpaid": "financial_status:pending OR financial_status:authorized",
}


def build_filter_query(filter_key: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """map a preset key to Admin API search syntax; unknown keys pass through as raw queries."""
    if not filter_key or filter_key == "all":
        return None
    today = today or date.today()

    if filter_key == "today":
        return f"created_at:>={today.isoformat()}"
    if filter_key == "week":
        return f"created_at:>={(today - timedelta(days=7)).isoformat()}"
    return _STATIC_FILTERS.get(filter_key, filter_key)


def available_filters(active: Optional[str]) -> List[Dict[str, object]]:
    out = []
    for key, label in FILTER_LABELS.items():
        is_active = (not active or active == "all") if key == "all" else active == key
        out.append({"key": key, "label": label, "active": is_active})
    return out
