"""
Message record store
====================

Read-one / write-one access to the CRM ``messages`` table.

- ``InMemoryMessageStore``: dict-backed store for tests and offline runs.
- ``SupabaseMessageStore``: the hosted database's REST layer
  (``{SUPABASE_URL}/rest/v1/<table>``) over ``httpx``.

No ordering or transaction guarantees across records are assumed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import httpx

from core.config import Settings, get_settings
from core.ir import MessageRecord
from core.logger import get_logger

logger = get_logger(__name__)

MESSAGE_COLUMNS = "id,type,content,created_at,subject,direction,recipient_email"


class MessageStore(ABC):
    """Interface the repair and audit pipelines depend on."""

    @abstractmethod
    def list_messages(
        self,
        message_type: Optional[str] = "email",
        limit: Optional[int] = None,
    ) -> List[MessageRecord]:
        """Newest first; ``message_type=None`` returns every type."""

    @abstractmethod
    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        pass

    @abstractmethod
    def update_content(self, message_id: str, content: str) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "MessageStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class InMemoryMessageStore(MessageStore):

    def __init__(self, records: Optional[Iterable[Any]] = None) -> None:
        self._records: Dict[str, MessageRecord] = {}
        for rec in records or []:
            record = rec if isinstance(rec, MessageRecord) else MessageRecord(**rec)
            self._records[record.id] = record

    def list_messages(
        self,
        message_type: Optional[str] = "email",
        limit: Optional[int] = None,
    ) -> List[MessageRecord]:
        rows = [
            r for r in self._records.values()
            if message_type is None or r.type == message_type
        ]
        rows.sort(key=MessageRecord.sort_key, reverse=True)
        return rows[:max(limit, 0)] if limit is not None else rows

    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        return self._records.get(str(message_id))

    def update_content(self, message_id: str, content: str) -> None:
        key = str(message_id)
        if key not in self._records:
            raise KeyError(f"Message not found: {message_id}")
        self._records[key] = self._records[key].model_copy(update={"content": content})


class SupabaseMessageStore(MessageStore):
    """
    Message store backed by the hosted database's REST endpoint.

    HTTP failures are logged and re-raised as ``httpx.HTTPStatusError``;
    there is no retry here.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY must be set. "
                "Please check your .env file."
            )
        self.table = settings.MESSAGES_TABLE
        self.page_size = settings.STORE_PAGE_SIZE
        self._client = httpx.Client(
            base_url=f"{settings.SUPABASE_URL}/rest/v1",
            headers={
                "apikey": settings.SUPABASE_KEY,
                "Authorization": f"Bearer {settings.SUPABASE_KEY}",
            },
            timeout=httpx.Timeout(settings.REQUEST_TIMEOUT, connect=10.0),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, params: Dict[str, Any], **kwargs: Any) -> httpx.Response:
        response = self._client.request(method, f"/{self.table}", params=params, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            logger.error(
                "%s /%s failed: status=%d body=%s",
                method,
                self.table,
                response.status_code,
                response.text[:500],
            )
            raise
        return response

    def list_messages(
        self,
        message_type: Optional[str] = "email",
        limit: Optional[int] = None,
    ) -> List[MessageRecord]:
        records: List[MessageRecord] = []
        offset = 0
        while True:
            page_size = self.page_size
            if limit is not None:
                page_size = min(page_size, limit - len(records))
                if page_size <= 0:
                    break
            params: Dict[str, Any] = {
                "select": MESSAGE_COLUMNS,
                "order": "created_at.desc",
                "limit": page_size,
                "offset": offset,
            }
            if message_type is not None:
                params["type"] = f"eq.{message_type}"
            rows = self._request("GET", params).json()
            records.extend(MessageRecord(**row) for row in rows)
            logger.debug("Fetched %d rows from %s (offset=%d)", len(rows), self.table, offset)
            if len(rows) < page_size:
                break
            offset += len(rows)
        logger.info("Loaded %d %s messages", len(records), message_type or "all")
        return records

    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        rows = self._request(
            "GET",
            {"select": MESSAGE_COLUMNS, "id": f"eq.{message_id}", "limit": 1},
        ).json()
        return MessageRecord(**rows[0]) if rows else None

    def update_content(self, message_id: str, content: str) -> None:
        self._request(
            "PATCH",
            {"id": f"eq.{message_id}"},
            json={"content": content},
            headers={"Prefer": "return=minimal"},
        )
        logger.debug("Updated content of message %s", message_id)
