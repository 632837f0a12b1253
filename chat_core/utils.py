"""
Utility functions for logging, redaction and text normalization.
"""

import re
import logging

PUNCTUATION_RE = re.compile(r"[^\w\s]")
SPACE_RE = re.compile(r"\s+")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Set up the package logger with a redaction filter."""
    logger = logging.getLogger("chat_core")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.addFilter(RedactionFilter())
        logger.addHandler(handler)

    return logger


class RedactionFilter(logging.Filter):
    """Filter to redact sensitive information from logs."""

    # Patterns to redact
    patterns = [
        (r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", "[EMAIL_REDACTED]"),
        (r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b", "[CARD_REDACTED]"),
        (r"\bsk-[a-zA-Z0-9]{32,}\b", "[API_KEY_REDACTED]"),
        (r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", "[PHONE_REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact sensitive data from log message."""
        message = record.getMessage()
        for pattern, replacement in self.patterns:
            message = re.sub(pattern, replacement, message)
        record.msg = message
        record.args = ()
        return True


def normalize_text(text: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace.

    Punctuation becomes a space so "what's" normalizes to "what s", which keeps
    keyword and query normalization identical.
    """
    normalized = text.lower().strip()
    normalized = PUNCTUATION_RE.sub(" ", normalized)
    normalized = SPACE_RE.sub(" ", normalized)
    return normalized.strip()


def tokenize(text: str) -> list[str]:
    """Normalize text and split it into words. Empty input yields no words."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split(" ")


def first_sentences(text: str, count: int = 2) -> str:
    """Keep the first ``count`` sentences of text."""
    sentences = [s.strip() for s in SENTENCE_SPLIT_RE.split(text) if s.strip()]
    kept = ". ".join(sentences[:count])
    return f"{kept}." if kept else kept


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to max length with suffix."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
