"""
Email extraction subpackage.

Public API:
- ``EmailParser``:       RFC 822 parsing and header decoding
- ``ContentCleaner``:    HTML→text, thread truncation, residual cleanup
- ``ContentValidator``:  display validation of stored content
- ``decoders``:          best-effort base64 / entity / quoted-printable decoding
"""

from core.extractors.email import decoders
from core.extractors.email.content_cleaner import ContentCleaner, ThreadRule
from core.extractors.email.content_validator import ContentValidator, is_sentinel
from core.extractors.email.email_parser import EmailParser

__all__ = [
    "ContentCleaner",
    "ContentValidator",
    "EmailParser",
    "ThreadRule",
    "decoders",
    "is_sentinel",
]
