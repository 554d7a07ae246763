"""
Email content extractor
=======================

Turns a raw ``messages.content`` value (possibly base64 inside a MIME
boundary, quoted-printable, HTML, or a whole reply thread) into the plain
text of the newest message only.

Stage order is fixed; each stage expects the output shape of the previous:

1. base64 unwrap          (``decoders.unwrap_base64_block``)
2. HTML stripping         (``ContentCleaner.strip_html_to_text``)
3. entity decoding        (``decoders.decode_entities``)
4. quoted-printable       (``decoders.decode_quoted_printable``)
5. thread truncation      (``ContentCleaner.truncate_email_thread``)
6. residual MIME cleanup  (``ContentCleaner.remove_residual_artifacts``)
7. whitespace             (``ContentCleaner.normalize_whitespace``)
8. sentinel fallback      (``ExtractionResult.to_display``)

``extract()`` never raises. Callers that need to tell "nothing usable"
apart from real text use ``extract_result()`` and check ``is_empty``.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Pattern, Tuple, Union

from core.extractors.email import decoders
from core.extractors.email.config import (
    BASE64_BLOCK_PATTERN,
    MIN_RESULT_CHARS,
    SIGNATURE_TAIL_THRESHOLD,
)
from core.extractors.email.content_cleaner import (
    DEFAULT_THREAD_RULES,
    ContentCleaner,
    ThreadRule,
)
from core.ir import ExtractionResult, ExtractionStatus, TruncationInfo
from core.logger import get_logger

logger = get_logger(__name__)


class EmailContentExtractor:
    """
    Stateless, re-entrant extractor for stored email bodies.

    Parameters:
        signature_tail_threshold: a sign-off ends the message only when the
            non-blank text after it is shorter than this many characters
        base64_block_pattern: regex whose first group captures a base64 body
            between MIME boundaries
        thread_rules: ordered thread truncation table
    """

    def __init__(
        self,
        signature_tail_threshold: int = SIGNATURE_TAIL_THRESHOLD,
        base64_block_pattern: Union[str, Pattern[str]] = BASE64_BLOCK_PATTERN,
        thread_rules: Tuple[ThreadRule, ...] = DEFAULT_THREAD_RULES,
    ) -> None:
        self.signature_tail_threshold = signature_tail_threshold
        self.base64_block_re = (
            re.compile(base64_block_pattern)
            if isinstance(base64_block_pattern, str)
            else base64_block_pattern
        )
        self.thread_rules = thread_rules

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, raw: Any) -> str:
        """Return the newest message's text, or the sentinel string."""
        return self.extract_result(raw).to_display()

    def extract_result(self, raw: Any) -> ExtractionResult:
        """Run the pipeline and return the tagged result. Never raises."""
        if not isinstance(raw, str) or not raw:
            return ExtractionResult.empty()
        try:
            return self._run(raw)
        except Exception as e:
            logger.error("Email content extraction failed: %s", e, exc_info=True)
            return ExtractionResult.empty()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, raw: str) -> ExtractionResult:
        decoded: List[str] = []

        content, did_unwrap = decoders.unwrap_base64_block(raw, self.base64_block_re)
        if did_unwrap:
            decoded.append("base64")

        content = ContentCleaner.strip_html_to_text(content)
        content = decoders.decode_entities(content)

        content, did_qp = decoders.decode_quoted_printable(content)
        if did_qp:
            decoded.append("quoted_printable")

        content, meta = ContentCleaner.truncate_email_thread(
            content,
            signature_tail_threshold=self.signature_tail_threshold,
            rules=self.thread_rules,
        )
        truncation = TruncationInfo(**meta)

        content = ContentCleaner.remove_residual_artifacts(content)
        content = ContentCleaner.normalize_whitespace(content)

        if len(content) < MIN_RESULT_CHARS:
            logger.debug("Extraction produced %d chars; marking empty", len(content))
            return ExtractionResult.empty(truncation=truncation, decoded=decoded)

        return ExtractionResult(
            status=ExtractionStatus.EXTRACTED,
            text=content,
            truncation=truncation,
            decoded=decoded,
        )


# Module-level default instance and helpers for one-off scripts.
_default_extractor: Optional[EmailContentExtractor] = None


def get_extractor() -> EmailContentExtractor:
    """Return a shared extractor built from settings."""
    global _default_extractor
    if _default_extractor is None:
        from core.config import get_settings

        settings = get_settings()
        _default_extractor = EmailContentExtractor(
            signature_tail_threshold=settings.EXTRACT_SIGNATURE_TAIL_CHARS,
        )
    return _default_extractor


def extract_customer_response(raw: Any) -> str:
    """Extract the newest message text from *raw* using default settings."""
    return get_extractor().extract(raw)
