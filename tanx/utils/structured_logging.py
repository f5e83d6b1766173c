"""
Structured logging helpers.

Credential redaction, flow correlation ids and an event-style logger whose
keyword fields become JSON attributes under the python-json-logger formatter.
"""

import logging
import re
import uuid
from typing import Optional
from contextvars import ContextVar

# Per-task correlation ID storage
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


class CredentialRedactionFilter(logging.Filter):
    """
    Filter that redacts credentials from log records.

    Masks Ethereum and STARK private keys (0x + 64 hex, unless labelled
    ``tx_hash=``), JWT access/refresh tokens, ``Authorization`` header
    values and key/secret assignments.
    The record is always passed through, only sanitised.

    Usage:
        >>> handler = logging.StreamHandler()
        >>> handler.addFilter(CredentialRedactionFilter())
        >>> logger.addHandler(handler)
    """

    # Transaction hashes have the same shape as keys; they are only kept when labelled tx_hash=
    PRIVATE_KEY_PATTERN = re.compile(r'(?<!tx_hash=)0x[0-9a-fA-F]{64}(?![0-9a-fA-F])')
    JWT_PATTERN = re.compile(r'eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*')
    AUTH_HEADER_PATTERN = re.compile(r'((?:JWT|Bearer)\s+)\S+', re.IGNORECASE)
    API_SECRET_PATTERN = re.compile(
        r'((?:secret|password|private_key|api_key|organization_key|refresh|access|token)'
        r'["\']?\s*[:=]\s*["\']?)[A-Za-z0-9+/=_\-.]{16,}["\']?',
        re.IGNORECASE
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = self.redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self.redact(str(v))
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.redact(str(arg))
                    for arg in record.args
                )

        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)

        return True

    @classmethod
    def redact(cls, text: str) -> str:
        """
        Redact all credential patterns from text.

        Args:
            text: Text to redact

        Returns:
            Text with credentials replaced by ``[REDACTED]``
        """
        if not text:
            return text

        # Keys first: the generic assignment pattern would otherwise eat them
        text = cls.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
        text = cls.JWT_PATTERN.sub('[REDACTED_JWT]', text)
        text = cls.AUTH_HEADER_PATTERN.sub(r'\1[REDACTED]', text)
        text = cls.API_SECRET_PATTERN.sub(r'\1[REDACTED]', text)
        return text


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id`` from the current context ("-" when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


class StructuredLogger:
    """
    Event logger with keyword fields.

    Example:
        >>> log = get_structured_logger("tanx.trading")
        >>> log.info("order_submitted", market="ethusdc", nonce=42)
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, event: str, message: Optional[str] = None, **fields) -> None:
        log_message = f"{event}: {message}" if message else event
        extra = {"event": event}
        extra.update(fields)
        self.logger.log(level, log_message, extra=extra)

    def debug(self, event: str, message: Optional[str] = None, **fields) -> None:
        self._log(logging.DEBUG, event, message, **fields)

    def info(self, event: str, message: Optional[str] = None, **fields) -> None:
        self._log(logging.INFO, event, message, **fields)

    def warning(self, event: str, message: Optional[str] = None, **fields) -> None:
        self._log(logging.WARNING, event, message, **fields)

    def error(self, event: str, message: Optional[str] = None, **fields) -> None:
        self._log(logging.ERROR, event, message, **fields)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set correlation ID for current context.

    Args:
        correlation_id: Correlation ID (generates one if None)

    Returns:
        The correlation ID set
    """
    if correlation_id is None:
        correlation_id = f"flow_{uuid.uuid4().hex[:12]}"

    _correlation_id.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear correlation ID from current context."""
    _correlation_id.set(None)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get structured logger instance."""
    return StructuredLogger(name)
