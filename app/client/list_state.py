# app/client/list_state.py
"""
Client-side list state: filters, sort, search and pagination, with a
round-trip to URL query strings.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode

MAX_LIMIT = 100
DEFAULT_LIMIT = 10

_RESERVED = {"page", "limit", "sortBy", "sortDirection", "search"}


@dataclass
class ListState:
    filters: dict[str, Any] = field(default_factory=dict)
    sort_by: str | None = None
    sort_direction: str = "asc"
    page: int = 1
    limit: int = DEFAULT_LIMIT
    search: str | None = None
    total: int = 0
    total_pages: int = 0

    def __post_init__(self) -> None:
        self.limit = _clamp_limit(self.limit)
        self.page = max(1, int(self.page))
        self.sort_direction = _direction(self.sort_direction)

    # -------------------------
    # Mutations (filter/sort/search reset the page)
    # -------------------------
    def set_filter(self, key: str, value: Any) -> None:
        if _is_empty(value):
            self.filters.pop(key, None)
        else:
            self.filters[key] = value
        self.page = 1

    def clear_filter(self, key: str) -> None:
        self.set_filter(key, None)

    def clear_all_filters(self) -> None:
        self.filters.clear()
        self.search = None
        self.page = 1

    def set_sort(self, field_name: str | None, direction: str = "asc") -> None:
        self.sort_by = field_name or None
        self.sort_direction = _direction(direction)
        self.page = 1

    def set_search(self, search: str | None) -> None:
        self.search = search.strip() if search and search.strip() else None
        self.page = 1

    def set_limit(self, limit: int) -> None:
        self.limit = _clamp_limit(limit)
        self.page = 1

    def set_page(self, page: int) -> None:
        upper = self.total_pages if self.total_pages > 0 else max(page, 1)
        self.page = min(max(1, page), upper)

    # -------------------------
    # Pagination
    # -------------------------
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def next_page(self) -> bool:
        if not self.has_next:
            return False
        self.page += 1
        return True

    def prev_page(self) -> bool:
        if not self.has_prev:
            return False
        self.page -= 1
        return True

    def apply_pagination(self, meta: Mapping[str, Any]) -> None:
        """Take ``{page, limit, total, totalPages}`` from a list response."""
        self.total = int(meta.get("total", 0) or 0)
        self.total_pages = int(meta.get("totalPages", meta.get("total_pages", 0)) or 0)
        if meta.get("limit"):
            self.limit = _clamp_limit(int(meta["limit"]))
        page = int(meta.get("page", self.page) or 1)
        self.page = min(max(1, page), max(1, self.total_pages))

    # -------------------------
    # Query string sync
    # -------------------------
    def to_query_params(self) -> dict[str, str]:
        params: dict[str, str] = {"page": str(self.page), "limit": str(self.limit)}
        if self.sort_by:
            params["sortBy"] = self.sort_by
            params["sortDirection"] = self.sort_direction
        if self.search:
            params["search"] = self.search
        for key, value in self.filters.items():
            if _is_empty(value):
                continue
            if isinstance(value, (list, tuple, set)):
                params[key] = ",".join(str(v) for v in value)
            elif isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params

    def to_query_string(self) -> str:
        return urlencode(self.to_query_params())

    @classmethod
    def from_query_string(cls, query: str) -> "ListState":
        params = dict(parse_qsl(query.lstrip("?"), keep_blank_values=False))
        filters: dict[str, Any] = {}
        for key, value in params.items():
            if key in _RESERVED:
                continue
            filters[key] = [v for v in value.split(",") if v] if "," in value else value
        return cls(
            filters=filters,
            sort_by=params.get("sortBy") or None,
            sort_direction=params.get("sortDirection", "asc"),
            page=_to_int(params.get("page"), 1),
            limit=_to_int(params.get("limit"), DEFAULT_LIMIT),
            search=params.get("search") or None,
        )


def _clamp_limit(limit: int) -> int:
    return min(max(1, int(limit)), MAX_LIMIT)


def _direction(direction: str | None) -> str:
    return "desc" if str(direction or "").lower() == "desc" else "asc"


def _to_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple, set, dict)) and not value)
