"""
Extractors module for turning stored message bodies into display text.

Provides:
- EmailContentExtractor: raw email body -> newest message's plain text
- extract_customer_response: module-level helper using default settings
"""

from core.extractors.email_extractor import (
    EmailContentExtractor,
    extract_customer_response,
    get_extractor,
)

__all__ = [
    "EmailContentExtractor",
    "extract_customer_response",
    "get_extractor",
]
