import logging
import os
import re
import sys
from typing import Optional


class IdentifierMaskingFilter(logging.Filter):
    """Filter to abbreviate content hashes (file and chunk identities) in log records."""

    PATTERN = re.compile(r'\b([0-9a-fA-F]{8})[0-9a-fA-F]{24,}\b')
    REPLACEMENT = r'\1***'

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask long hex identifiers in the log message."""
        if isinstance(record.msg, str):
            record.msg = self.PATTERN.sub(self.REPLACEMENT, record.msg)

        if hasattr(record, 'args') and record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    def _mask_value(self, value):
        """Mask identifiers in arguments."""
        if isinstance(value, str):
            value = self.PATTERN.sub(self.REPLACEMENT, value)
        return value


def _masking_enabled() -> bool:
    return os.getenv('LOG_MASK_IDENTIFIERS', 'false').lower() in ('1', 'true', 'yes')


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    request_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (e.g., 'uploadserver', 'chunkstore')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        request_id: Optional request ID to include in log format

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(request_id))

    if _masking_enabled():
        handler.addFilter(IdentifierMaskingFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger

