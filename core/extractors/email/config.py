"""
Centralised configuration for the email content extraction pipeline.

All regex patterns, replacement tables, thread rules and magic-number
thresholds live here.
"""

from __future__ import annotations

import re
from typing import List, Tuple

# ---------------------------------------------------------------------------
# Result length
# ---------------------------------------------------------------------------

MIN_RESULT_CHARS = 2

# ---------------------------------------------------------------------------
# Stage 1: opportunistic base64 unwrap
# ---------------------------------------------------------------------------

BASE64_BLOCK_PATTERN = r"----[A-Za-z0-9._]+\r?\n([A-Za-z0-9+/=\r\n]+)----[A-Za-z0-9._]+"

# ---------------------------------------------------------------------------
# Stage 2: HTML stripping (order matters)
# ---------------------------------------------------------------------------

# Elements removed together with their body, up to the first matching close
# tag. An opening tag with no close after it is left to the generic tag rule.
HTML_DROP_ELEMENTS: Tuple[str, ...] = ("style", "script")

HTML_STRIP_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n"),
    (re.compile(r"</div>", re.IGNORECASE), "\n"),
    (re.compile(r"<[^<>]+>"), " "),
]

# ---------------------------------------------------------------------------
# Stage 3: entities and double-decoded smart quotes (literal replacements)
# ---------------------------------------------------------------------------

HTML_ENTITIES: List[Tuple[str, str]] = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
]

# UTF-8 quotes read back as Latin-1/cp1252. Longest sequences first.
MOJIBAKE_REPLACEMENTS: List[Tuple[str, str]] = [
    ("â€™", "'"),
    ("â€œ", '"'),
    ("â€", '"'),
    ("â", ""),
]

# ---------------------------------------------------------------------------
# Stage 4: quoted-printable
# ---------------------------------------------------------------------------

QP_SOFT_BREAK_RE = re.compile(r"=\r?\n")
QP_ESCAPE_RUN_RE = re.compile(r"(?:=[0-9A-Fa-f]{2})+")

# ---------------------------------------------------------------------------
# Stage 5: thread truncation rules (order = precedence)
#
# (pattern, marker_name, action, span). A rule is tested against the
# stripped current line joined with the next ``span - 1`` stripped lines.
# ---------------------------------------------------------------------------

ACTION_STOP = "stop"
ACTION_SIGN_OFF = "sign_off"

THREAD_RULES: List[Tuple[str, str, str, int]] = [
    # Quoted-reply structure
    (r"^On .* wrote:$", "on_wrote_header", ACTION_STOP, 1),
    (r"^From:.*\nSent:.*\nTo:", "outlook_header_block", ACTION_STOP, 3),
    (r"^----+ ?Original [Mm]essage ?----+", "original_message_divider", ACTION_STOP, 1),
    (r"^_{10,}", "underscore_divider", ACTION_STOP, 1),
    (r"^>", "quote_marker", ACTION_STOP, 1),
    # Sign-offs
    (r"^Sent from my (iPhone|iPad|Galaxy|Samsung|Android|Huawei)", "sent_from_device", ACTION_SIGN_OFF, 1),
    (r"^Sent from Outlook", "sent_from_outlook", ACTION_SIGN_OFF, 1),
    (r"^Get Outlook for (iOS|Android)", "get_outlook", ACTION_SIGN_OFF, 1),
    (r"^Regards,?\s*$", "regards", ACTION_SIGN_OFF, 1),
    (r"^Kind regards,?\s*$", "kind_regards", ACTION_SIGN_OFF, 1),
    (r"^Best regards,?\s*$", "best_regards", ACTION_SIGN_OFF, 1),
    (r"^Thanks,?\s*$", "thanks", ACTION_SIGN_OFF, 1),
    (r"^Thank you,?\s*$", "thank_you", ACTION_SIGN_OFF, 1),
]

# A sign-off only ends the message when the non-blank text after it is
# shorter than this.
SIGNATURE_TAIL_THRESHOLD = 52

# ---------------------------------------------------------------------------
# Stage 6: residual MIME artifacts
# ---------------------------------------------------------------------------

RESIDUAL_LINE_PATTERNS: List[re.Pattern] = [
    re.compile(r"^Content-Type:.*$", re.MULTILINE),
    re.compile(r"^Content-Transfer-Encoding:.*$", re.MULTILINE),
    re.compile(r"^Content-Disposition:.*$", re.MULTILINE),
    re.compile(r"^--[A-Za-z0-9._-]+$", re.MULTILINE),
    re.compile(r"^--[A-Za-z0-9._-]+--$", re.MULTILINE),
    re.compile(r"^>+.*$", re.MULTILINE),
]

# ---------------------------------------------------------------------------
# Stage 7: whitespace
# ---------------------------------------------------------------------------

EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
HORIZONTAL_SPACE_RE = re.compile(r"[ \t]+")

# ---------------------------------------------------------------------------
# Display validation
# ---------------------------------------------------------------------------

CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 100000
SUBJECT_MAX_LENGTH = 200
PREVIEW_CHARS = 200

# (pattern, issue_code) checked against message content, in order.
CONTENT_ISSUE_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"^[A-Za-z0-9+/]+=*$"), "BASE64_CONTENT_NOT_DECODED"),
    (re.compile(r"=3D|=20|=0A"), "QUOTED_PRINTABLE_NOT_DECODED"),
    (re.compile(r"<html|<body|<div"), "HTML_TAGS_NOT_STRIPPED"),
    (re.compile(r"Content-Type:|Content-Transfer-Encoding:|MIME-Version:"), "MIME_HEADERS_NOT_REMOVED"),
    (re.compile("[ĐÑÐ]"), "GARBLED_CHARACTERS_ENCODING_ISSUE"),
]

FROM_ADDRESS_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Markup detection for the audit report.
HTML_MARKERS_RE = re.compile(r"<[^<>]+>|&nbsp;|&lt;|&gt;|&amp;|<!DOCTYPE", re.IGNORECASE)
