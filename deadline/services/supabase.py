from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from supabase import create_client, Client

from deadline.config import settings
from deadline.errors import StoreError
from deadline.services import logger as log_service

EVENTS = "events"
EVENT_DETAILS = "event_details"
EVENT_UPDATES = "event_updates"

DETAIL_FIELDS = (
    "headline",
    "location",
    "details",
    "accused",
    "victims",
    "timeline",
    "sources",
    "images",
)


def get_client() -> Client:
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventStore:
    """Reads and writes events, event_details and event_updates rows."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def _execute(self, operation: str, table: str, query: Any) -> Any:
        try:
            result = query.execute()
        except Exception as e:
            log_service.log_db_operation(operation, table, "error", error=str(e))
            raise StoreError(f"{operation} on {table} failed: {e}") from e
        log_service.log_db_operation(operation, table, "success")
        return result

    # --- Events ---

    async def list_events(self) -> list[dict[str, Any]]:
        result = self._execute(
            "select",
            EVENTS,
            self.client.table(EVENTS).select("*").order("last_updated", desc=True),
        )
        return result.data or []

    async def get_event(self, event_id: int | str) -> dict[str, Any] | None:
        result = self._execute(
            "select",
            EVENTS,
            self.client.table(EVENTS).select("*").eq("event_id", event_id).limit(1),
        )
        return result.data[0] if result.data else None

    async def set_last_updated(self, event_id: int | str, last_updated: str) -> None:
        self._execute(
            "update",
            EVENTS,
            self.client.table(EVENTS)
            .update({"last_updated": last_updated})
            .eq("event_id", event_id),
        )

    # --- Event details ---

    async def get_event_details(self, event_id: int | str) -> dict[str, Any] | None:
        result = self._execute(
            "select",
            EVENT_DETAILS,
            self.client.table(EVENT_DETAILS).select("*").eq("event_id", event_id).limit(1),
        )
        return result.data[0] if result.data else None

    async def find_event_id_by_slug(self, slug: str) -> Any | None:
        result = self._execute(
            "select",
            EVENT_DETAILS,
            self.client.table(EVENT_DETAILS).select("event_id").eq("slug", slug).limit(1),
        )
        return result.data[0]["event_id"] if result.data else None

    async def upsert_event_details(self, event_id: int | str, record: dict[str, Any]) -> str:
        """Update the event's details row if it exists, insert it otherwise.

        Returns ``"updated"`` or ``"inserted"``.
        """
        existing = await self.get_event_details(event_id)
        timestamp = utc_now_iso()
        row = {name: record.get(name) for name in DETAIL_FIELDS}
        row["updated_at"] = timestamp

        if existing:
            self._execute(
                "update",
                EVENT_DETAILS,
                self.client.table(EVENT_DETAILS).update(row).eq("event_id", event_id),
            )
            return "updated"

        row["event_id"] = event_id
        row["created_at"] = timestamp
        self._execute(
            "insert",
            EVENT_DETAILS,
            self.client.table(EVENT_DETAILS).insert(row),
        )
        return "inserted"

    # --- Event updates ---

    async def insert_updates(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        result = self._execute(
            "insert",
            EVENT_UPDATES,
            self.client.table(EVENT_UPDATES).insert(rows),
        )
        return result.data or rows

    async def list_updates(self, event_id: int | str) -> tuple[list[dict[str, Any]], int]:
        result = self._execute(
            "select",
            EVENT_UPDATES,
            self.client.table(EVENT_UPDATES)
            .select("*", count="exact")
            .eq("event_id", event_id)
            .order("update_date", desc=True),
        )
        rows = result.data or []
        count = result.count if result.count is not None else len(rows)
        return rows, count


_store: EventStore | None = None


def store() -> EventStore:
    """Get or create the process-wide store."""
    global _store
    if _store is None:
        _store = EventStore()
    return _store
