from typing import Optional

SEARCH_TYPES = ("auto", "id", "name", "email", "customer", "phone")
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50


def is_id_lookup(term: str, search_type: str) -> bool:
    return search_type == "id" or (search_type == "auto" and term.isdigit() and term.isascii())


def _name_query(term: str) -> str:
    if term.startswith("#"):
        return f"name:{term}"
    if term.isdigit():
        return f"name:#{term}"
    return f"name:*{term}*"


def _customer_query(term: str) -> str:
    return f"customer.first_name:*{term}* OR customer.last_name:*{term}* OR customer.email:*{term}*"


def build_search_query(term: str, search_type: str = "auto") -> str:
    """order search syntax for the Admin API `orders(query:)` argument."""
    if search_type in ("name", "auto"):
        return _name_query(term)
    if search_type == "email":
        return f"email:{term}"
    if search_type == "customer":
        return _customer_query(term)
    if search_type == "phone":
        return f"phone:*{term}*"

    # unknown type: guess from the term itself
    if "@" in term:
        return f"email:{term}"
    if term.startswith("#") or term.isdigit():
        return _name_query(term)
    return f"name:*{term}* OR {_customer_query(term)}"


def clamp_limit(limit: Optional[int], default: int = DEFAULT_SEARCH_LIMIT, maximum: int = MAX_SEARCH_LIMIT) -> int:
    return min(limit or default, maximum)
