"""
Best-effort decoders for raw email bodies.

Each helper takes the working buffer and returns either the transformed
text or the input unchanged. Failures are logged, never raised.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Pattern, Tuple, Union

from core.extractors.email.config import (
    BASE64_BLOCK_PATTERN,
    HTML_ENTITIES,
    MOJIBAKE_REPLACEMENTS,
    QP_ESCAPE_RUN_RE,
    QP_SOFT_BREAK_RE,
)
from core.logger import get_logger

logger = get_logger(__name__)

_DEFAULT_BASE64_BLOCK_RE = re.compile(BASE64_BLOCK_PATTERN)


def unwrap_base64_block(
    text: str,
    pattern: Union[str, Pattern[str], None] = None,
) -> Tuple[str, bool]:
    """Replace *text* with the decoded body of its first base64 MIME block.

    Returns ``(text, decoded)``. When no block is found, or the block is
    not valid base64 carrying UTF-8 text, the input comes back unchanged.
    """
    if pattern is None:
        regex = _DEFAULT_BASE64_BLOCK_RE
    elif isinstance(pattern, str):
        regex = re.compile(pattern)
    else:
        regex = pattern

    match = regex.search(text)
    if not match or not match.group(1):
        return text, False

    payload = re.sub(r"\r?\n", "", match.group(1))
    try:
        decoded = base64.b64decode(payload).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        # UnicodeDecodeError is a ValueError
        logger.warning("Failed to decode base64 content: %s", e)
        return text, False
    return decoded, True


def decode_entities(text: str) -> str:
    """Decode the common named entities and repair double-decoded quotes."""
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)
    for garbled, replacement in MOJIBAKE_REPLACEMENTS:
        text = text.replace(garbled, replacement)
    return text


def _decode_escape_run(match: "re.Match[str]") -> str:
    run = match.group(0)
    raw = bytes.fromhex(run.replace("=", ""))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def decode_quoted_printable(text: str) -> Tuple[str, bool]:
    """Drop soft line breaks and decode ``=XY`` escapes.

    Consecutive escapes are decoded together so multi-byte UTF-8 sequences
    (``=C3=A9``) become one character; a run that is not valid UTF-8 is
    read as Latin-1. Returns ``(text, decoded)``.
    """
    result = QP_SOFT_BREAK_RE.sub("", text)
    result = QP_ESCAPE_RUN_RE.sub(_decode_escape_run, result)
    return result, result != text
