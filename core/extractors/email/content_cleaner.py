"""
Content cleaning and normalisation for email bodies.

Responsibilities:
- Strip HTML to plain text (styles, scripts, block boundaries, tags).
- Truncate quoted email threads with an ordered rule table.
- Remove leftover MIME headers, boundaries and quote lines.
- Normalise whitespace.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from core.extractors.email.config import (
    ACTION_SIGN_OFF,
    ACTION_STOP,
    EXCESS_NEWLINES_RE,
    HORIZONTAL_SPACE_RE,
    HTML_DROP_ELEMENTS,
    HTML_STRIP_RULES,
    RESIDUAL_LINE_PATTERNS,
    SIGNATURE_TAIL_THRESHOLD,
    THREAD_RULES,
)

_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ThreadRule:
    """One row of the thread truncation table."""
    marker: str
    pattern: Pattern[str]
    action: str
    span: int = 1

    def matches(self, stripped_lines: List[str], index: int) -> bool:
        window = "\n".join(stripped_lines[index:index + self.span])
        return self.pattern.search(window) is not None


def compile_thread_rules(
    rules: List[Tuple[str, str, str, int]] = THREAD_RULES,
) -> Tuple[ThreadRule, ...]:
    """Compile ``(pattern, marker, action, span)`` rows, keeping their order."""
    compiled = []
    for pattern, marker, action, span in rules:
        if action not in (ACTION_STOP, ACTION_SIGN_OFF):
            raise ValueError(f"Unknown thread rule action: {action}")
        compiled.append(ThreadRule(marker, re.compile(pattern, re.IGNORECASE), action, span))
    return tuple(compiled)


DEFAULT_THREAD_RULES = compile_thread_rules()


class ContentCleaner:
    """Stateless utilities for cleaning / normalising email body text."""

    # ------------------------------------------------------------------
    # HTML → text
    # ------------------------------------------------------------------

    @staticmethod
    def strip_html_to_text(html_text: str) -> str:
        """Convert HTML to plain text without decoding entities.

        Block closers become newlines before the remaining tags are replaced
        by a space, so words on either side of a removed tag stay apart.
        """
        if not html_text:
            return ""
        text = html_text
        for tag in HTML_DROP_ELEMENTS:
            text = ContentCleaner.drop_element(text, tag)
        for pattern, replacement in HTML_STRIP_RULES:
            text = pattern.sub(replacement, text)
        return text

    @staticmethod
    def drop_element(text: str, tag: str) -> str:
        """Remove ``<tag ...>...</tag>`` blocks in a single forward pass.

        Each block ends at the first close tag after its opening tag. Once
        no close tag remains, the rest of the text is returned untouched.
        """
        open_re = re.compile(rf"<{tag}", re.IGNORECASE)
        close_re = re.compile(rf"</{tag}>", re.IGNORECASE)
        parts: List[str] = []
        pos = 0
        while True:
            opening = open_re.search(text, pos)
            if opening is None:
                break
            tag_end = text.find(">", opening.end())
            if tag_end < 0:
                break
            closing = close_re.search(text, tag_end + 1)
            if closing is None:
                break
            parts.append(text[pos:opening.start()])
            pos = closing.end()
        parts.append(text[pos:])
        return "".join(parts)

    # ------------------------------------------------------------------
    # Thread truncation
    # ------------------------------------------------------------------

    @staticmethod
    def match_thread_rule(
        stripped_lines: List[str],
        index: int,
        rules: Tuple[ThreadRule, ...] = DEFAULT_THREAD_RULES,
    ) -> Optional[ThreadRule]:
        """Return the first rule matching the line at *index*, in table order."""
        for rule in rules:
            if rule.matches(stripped_lines, index):
                return rule
        return None

    @classmethod
    def truncate_email_thread(
        cls,
        text: str,
        signature_tail_threshold: int = SIGNATURE_TAIL_THRESHOLD,
        rules: Tuple[ThreadRule, ...] = DEFAULT_THREAD_RULES,
    ) -> Tuple[str, dict]:
        """Keep only the newest message, scanning lines from the top.

        A ``stop`` rule discards its line and everything after it. A
        ``sign_off`` rule does the same only when the non-blank text after
        it is shorter than *signature_tail_threshold*. Leading blank lines
        are skipped; blank lines inside the message are kept.

        Returns ``(truncated_text, truncation_meta)``.
        """
        meta = {"truncated": False, "rule": None, "marker": None}
        if not text:
            return "", meta

        lines = _LINE_SPLIT_RE.split(text)
        stripped = [line.strip() for line in lines]
        kept: List[str] = []

        for idx, line in enumerate(stripped):
            rule = cls.match_thread_rule(stripped, idx, rules)
            if rule is not None:
                stop = rule.action == ACTION_STOP
                if rule.action == ACTION_SIGN_OFF:
                    remainder = "".join(l for l in lines[idx + 1:] if l.strip())
                    stop = len(remainder) < signature_tail_threshold
                if stop:
                    meta = {
                        "truncated": True,
                        "rule": rule.action,
                        "marker": rule.marker,
                        "line_index": idx,
                    }
                    break

            if line or kept:
                kept.append(lines[idx])

        return "\n".join(kept), meta

    # ------------------------------------------------------------------
    # Residual artifacts
    # ------------------------------------------------------------------

    @staticmethod
    def remove_residual_artifacts(text: str) -> str:
        """Blank out MIME header lines, boundary markers and quoted lines."""
        for pattern in RESIDUAL_LINE_PATTERNS:
            text = pattern.sub("", text)
        return text

    # ------------------------------------------------------------------
    # Whitespace
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        """Collapse spaces, trim every line, allow at most one blank line in a row."""
        text = HORIZONTAL_SPACE_RE.sub(" ", text)
        text = "\n".join(line.strip() for line in text.split("\n"))
        text = EXCESS_NEWLINES_RE.sub("\n\n", text)
        return text.strip()
