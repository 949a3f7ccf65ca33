from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from src.core.config import get_settings
from src.core.errors import StoreQueryError

logger = logging.getLogger(__name__)


class SupabaseClient:
    _shared_client: httpx.Client | None = None
    _client_lock: Lock = Lock()

    def __init__(self) -> None:
        settings = get_settings()
        self.base_url = settings.supabase_url.rstrip("/") + "/rest/v1"
        self.api_key = settings.supabase_service_role_key or settings.supabase_anon_key
        if not self.api_key:
            raise ValueError("Supabase API key is required")
        self.page_size = max(settings.store_page_size, 1)
        self._client = self._get_shared_client()

    @classmethod
    def _get_shared_client(cls) -> httpx.Client:
        if cls._shared_client is not None:
            return cls._shared_client
        with cls._client_lock:
            if cls._shared_client is None:
                cls._shared_client = httpx.Client(
                    timeout=30.0,
                    limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
                )
        return cls._shared_client

    def select(
        self,
        table: str,
        select: str,
        filters: Optional[List[Tuple[str, str]]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: List[Tuple[str, str]] = [("select", select)]
        if filters:
            params.extend(filters)
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset is not None:
            params.append(("offset", str(offset)))
        if order:
            params.append(("order", order))

        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }
        url = f"{self.base_url}/{table}?{urlencode(params, doseq=True)}"
        try:
            response = self._client.get(url, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Store query on %s failed: %s", table, exc)
            raise StoreQueryError(f"Failed to read {table}", table=table) from exc
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
        return []

    def select_all(
        self,
        table: str,
        select: str,
        filters: Optional[List[Tuple[str, str]]] = None,
        order: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = self.select(
                table=table,
                select=select,
                filters=filters,
                limit=self.page_size,
                offset=offset,
                order=order,
            )
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size


def build_in_filter(values: Iterable[str]) -> Optional[str]:
    sanitized_values = [value.strip() for value in values if value and value.strip()]
    if not sanitized_values:
        return None
    escaped_values = ['"' + value.replace('"', '\\"') + '"' for value in sanitized_values]
    return f"in.({','.join(escaped_values)})"
