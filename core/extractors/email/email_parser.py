"""
Low-level RFC 822 parsing: byte parsing, MIME header decoding and
text/html body selection for messages pulled from the mailbox.
"""

from __future__ import annotations

from email import policy
from email.header import decode_header
from email.message import Message
from email.parser import BytesParser
from pathlib import Path
from typing import Optional, Union

from core.logger import get_logger

logger = get_logger(__name__)


class EmailParser:
    """Parse raw email bytes (or ``.eml`` files) into a structured dictionary."""

    # ------------------------------------------------------------------
    # Header decoding
    # ------------------------------------------------------------------

    @staticmethod
    def decode_mime_header(header_value: Optional[str]) -> str:
        """Decode a MIME header value into a plain string."""
        if not header_value:
            return ""
        decoded_parts = decode_header(str(header_value))
        decoded_string = ""
        for part, encoding in decoded_parts:
            if isinstance(part, bytes):
                try:
                    decoded_string += part.decode(encoding if encoding else "utf-8", errors="ignore")
                except LookupError:
                    decoded_string += part.decode("utf-8", errors="ignore")
            else:
                decoded_string += part
        return decoded_string

    # ------------------------------------------------------------------
    # Full parse
    # ------------------------------------------------------------------

    @classmethod
    def parse_bytes(cls, raw: bytes) -> dict:
        """Parse raw message bytes and return structured data.

        Returns::

            {
                "headers": { "from", "to", "subject", "date", "message_id" },
                "bodies":  { "text": str | None, "html": str | None },
            }
        """
        msg = BytesParser(policy=policy.default).parsebytes(raw)
        return cls._from_message(msg)

    @classmethod
    def parse(cls, path: Union[str, Path]) -> dict:
        """Parse an ``.eml`` file; see ``parse_bytes`` for the shape."""
        logger.info("Email parse: start %s", path)
        parsed = cls.parse_bytes(Path(path).read_bytes())
        logger.info("Email parse: done %s", path)
        return parsed

    @classmethod
    def _from_message(cls, msg: Message) -> dict:
        headers = {
            "from": cls.decode_mime_header(msg.get("From", "")),
            "to": cls.decode_mime_header(msg.get("To", "")),
            "subject": cls.decode_mime_header(msg.get("Subject", "")),
            "date": str(msg.get("Date", "") or ""),
            "message_id": str(msg.get("Message-ID", "") or ""),
        }

        bodies: dict = {"text": None, "html": None}
        for part in msg.walk():
            if part.is_multipart():
                continue
            if "attachment" in str(part.get("Content-Disposition", "")):
                continue
            content_type = part.get_content_type()
            key = {"text/plain": "text", "text/html": "html"}.get(content_type)
            if key is None or bodies[key] is not None:
                continue
            payload = part.get_payload(decode=True)
            if not payload:
                continue
            charset = part.get_content_charset() or "utf-8"
            try:
                bodies[key] = payload.decode(charset, errors="ignore")
            except LookupError:
                logger.warning("Unknown charset %s; decoding %s as utf-8", charset, content_type)
                bodies[key] = payload.decode("utf-8", errors="ignore")

        return {"headers": headers, "bodies": bodies}

    # ------------------------------------------------------------------
    # Body selection
    # ------------------------------------------------------------------

    @staticmethod
    def body_for_extraction(parsed: dict) -> str:
        """Prefer ``text/plain``; fall back to ``text/html``; else empty."""
        bodies = parsed.get("bodies") or {}
        return bodies.get("text") or bodies.get("html") or ""
