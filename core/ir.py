"""
Intermediate representation module
==================================

Core data structures shared by the extractor, validator, record store and
repair pipeline: MessageRecord, ExtractionResult, validation and report models.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

# Reserved display value for "nothing usable was extracted". Consumers
# (duplicate detection, UI) treat it as a marker, never as content.
NO_CONTENT_SENTINEL = "No content available"


class ExtractionStatus(str, Enum):
    """
    Tagged outcome of an extraction: usable text, or nothing usable.
    """
    EXTRACTED = "extracted"
    EMPTY = "empty"


class TruncationInfo(BaseModel):
    """
    Which thread rule cut the message, if any.
    """
    truncated: bool = False
    rule: Optional[str] = None
    marker: Optional[str] = None
    line_index: Optional[int] = None


class ExtractionResult(BaseModel):
    """
    Internal result of the extraction pipeline.

    Attributes:
        status: EXTRACTED or EMPTY
        text: extracted text; empty string when status is EMPTY
        truncation: thread truncation details
        decoded: optional decode stages that changed the buffer ("base64", "quoted_printable")
    """
    status: ExtractionStatus
    text: str = ""
    truncation: TruncationInfo = TruncationInfo()
    decoded: List[str] = []

    class Config:
        frozen = True

    @classmethod
    def empty(cls, **kwargs: Any) -> "ExtractionResult":
        return cls(status=ExtractionStatus.EMPTY, text="", **kwargs)

    @property
    def is_empty(self) -> bool:
        return self.status == ExtractionStatus.EMPTY

    def to_display(self) -> str:
        """Boundary form: the text, or the sentinel when nothing was extracted."""
        return NO_CONTENT_SENTINEL if self.is_empty else self.text


class MessageRecord(BaseModel):
    """
    One row of the ``messages`` table. Columns not listed here are ignored.
    """
    id: str
    type: Optional[str] = None
    content: Optional[str] = None
    created_at: Optional[str] = None
    subject: Optional[str] = None
    direction: Optional[str] = None
    recipient_email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None:
            raise ValueError("message id is required")
        return str(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> Optional[str]:
        if isinstance(v, datetime):
            return v.isoformat()
        return v

    def created_datetime(self) -> Optional[datetime]:
        """Parse ``created_at`` as an aware datetime (naive values are UTC).

        None when missing or unparseable.
        """
        if not self.created_at:
            return None
        value = self.created_at.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    def sort_key(self) -> datetime:
        """Chronological key; records without a usable timestamp sort oldest."""
        return self.created_datetime() or datetime.min.replace(tzinfo=timezone.utc)

    def created_date(self) -> Optional[date]:
        dt = self.created_datetime()
        return dt.date() if dt else None


class ContentValidation(BaseModel):
    """
    Display validation of one content string.
    """
    is_valid: bool
    issues: List[str] = []
    severity: str = "LOW"
    content_length: int = 0
    preview: str = ""


class MessageValidation(BaseModel):
    """
    Display validation of a full message record.
    """
    message_id: Optional[str] = None
    subject: Optional[str] = None
    from_address: Optional[str] = None
    timestamp: Optional[str] = None
    is_valid: bool = True
    issues: List[str] = []
    severity: str = "LOW"
    content_validation: Optional[ContentValidation] = None


class RepairChange(BaseModel):
    """
    A content rewrite proposed (dry run) or applied by the repair pipeline.
    """
    message_id: str
    before_preview: str
    after_preview: str
    degraded: bool = False
    applied: bool = False
    error: Optional[str] = None


class RepairReport(BaseModel):
    """
    Summary of a repair run over the message store.
    """
    dry_run: bool = False
    scanned: int = 0
    changed: int = 0
    unchanged: int = 0
    degraded: int = 0
    failed: int = 0
    changes: List[RepairChange] = []


class AuditReport(BaseModel):
    """
    Summary of an audit over recent messages.
    """
    total: int = 0
    by_type: Dict[str, int] = {}
    with_html: List[str] = []
    sentinel_count: int = 0
    invalid: List[MessageValidation] = []
    duplicates: Dict[str, List[str]] = {}
