"""
Pipeline: batch jobs over the message store.

run_repair – re-extract stored email content and write back what changed
run_audit  – report markup leftovers, display issues and likely duplicates

Text work is delegated to:
  core.extractors.email_extractor   – EmailContentExtractor
  core.extractors.email             – ContentValidator
"""

from __future__ import annotations

from typing import Dict, List, Optional

import httpx

from core.extractors.email.config import HTML_MARKERS_RE, PREVIEW_CHARS
from core.extractors.email.content_validator import ContentValidator, is_sentinel
from core.extractors.email_extractor import EmailContentExtractor, get_extractor
from core.ir import AuditReport, MessageRecord, RepairChange, RepairReport
from core.logger import get_logger
from core.store import MessageStore

logger = get_logger(__name__)


def _preview(text: Optional[str]) -> str:
    text = text or ""
    return text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")


# ---------------------------------------------------------------------------
# Repair
# ---------------------------------------------------------------------------

def run_repair(
    store: MessageStore,
    extractor: Optional[EmailContentExtractor] = None,
    dry_run: bool = False,
    limit: Optional[int] = None,
) -> RepairReport:
    """
    Re-run extraction over stored emails and write back changed content.

    Steps:
      1. Load ``type == "email"`` records (newest first)
      2. Extract each ``content``; unchanged rows are skipped
      3. Write back by id unless *dry_run*; a failed write is counted, not fatal
    """
    extractor = extractor or get_extractor()
    report = RepairReport(dry_run=dry_run)

    records = store.list_messages(message_type="email", limit=limit)
    logger.info("run_repair: %d email messages (dry_run=%s)", len(records), dry_run)

    for record in records:
        report.scanned += 1
        result = extractor.extract_result(record.content)
        new_content = result.to_display()
        if result.is_empty:
            report.degraded += 1

        if new_content == record.content:
            report.unchanged += 1
            continue

        change = RepairChange(
            message_id=record.id,
            before_preview=_preview(record.content),
            after_preview=_preview(new_content),
            degraded=result.is_empty,
        )
        if not dry_run:
            try:
                store.update_content(record.id, new_content)
                change.applied = True
            except (httpx.HTTPError, KeyError) as e:
                logger.error("Failed to update message %s: %s", record.id, e)
                change.error = str(e)
                report.failed += 1
                report.changes.append(change)
                continue

        report.changed += 1
        report.changes.append(change)

    logger.info(
        "run_repair: scanned=%d changed=%d unchanged=%d degraded=%d failed=%d",
        report.scanned,
        report.changed,
        report.unchanged,
        report.degraded,
        report.failed,
    )
    return report


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

def duplicate_key(record: MessageRecord) -> Optional[str]:
    """Key used to spot duplicates: recipient, subject and calendar day.

    Messages whose content is the no-content marker never count.
    """
    if is_sentinel(record.content):
        return None
    day = record.created_date()
    return f"{record.recipient_email}-{record.subject}-{day.isoformat() if day else None}"


def run_audit(store: MessageStore, limit: int = 50) -> AuditReport:
    """Inspect the newest *limit* messages of every type."""
    records = store.list_messages(message_type=None, limit=limit)
    logger.info("run_audit: %d recent messages", len(records))

    report = AuditReport(total=len(records))
    seen: Dict[str, List[str]] = {}

    for record in records:
        msg_type = record.type or "unknown"
        report.by_type[msg_type] = report.by_type.get(msg_type, 0) + 1

        content = record.content or ""
        if HTML_MARKERS_RE.search(content):
            report.with_html.append(record.id)
        if is_sentinel(content):
            report.sentinel_count += 1

        if record.type == "email":
            validation = ContentValidator.validate_message(record)
            if not validation.is_valid:
                report.invalid.append(validation)
                ContentValidator.log_validation(validation)

        key = duplicate_key(record)
        if key is not None:
            seen.setdefault(key, []).append(record.id)

    report.duplicates = {k: ids for k, ids in seen.items() if len(ids) > 1}

    logger.info(
        "run_audit: html=%d sentinel=%d invalid=%d duplicate_groups=%d",
        len(report.with_html),
        report.sentinel_count,
        len(report.invalid),
        len(report.duplicates),
    )
    return report
