"""Logging configuration for the API server.

Provides dual output (stdout + file) with configurable level via LOG_LEVEL env var.
Default: INFO. Set LOG_LEVEL=WARNING for production, DEBUG for verbose output.
Every handler carries a filter that masks credential envelopes, so a stray
ciphertext in a log call never reaches disk.
"""

import logging
import os
import re
import sys
from pathlib import Path

# Map string level names to logging constants
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# "<ivHex>:<cipherHex>" as produced by CredentialVault
ENVELOPE_PATTERN = re.compile(r"\b[0-9a-fA-F]{24}:[0-9a-fA-F]{32,}\b")
REDACTED = "[REDACTED]"


def get_log_level(level_str: str | None = None) -> int:
    """Get logging level from argument or LOG_LEVEL environment variable.

    Returns:
        Logging level constant (default: INFO)
    """
    level_str = (level_str or os.getenv("LOG_LEVEL", "INFO")).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


class CredentialRedactionFilter(logging.Filter):
    """Replace credential envelopes in log messages with a placeholder."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if ENVELOPE_PATTERN.search(message):
            record.msg = ENVELOPE_PATTERN.sub(REDACTED, message)
            record.args = None
        return True


def setup_server_logging(log_file: str = "logs/server.log", level: str | None = None) -> None:
    """
    Configure root logger for the API server.

    Args:
        log_file: Path to log file (default: logs/server.log)
        level: Level name; falls back to LOG_LEVEL env var, then INFO

    Behavior:
        - Sets up all loggers to output to both stdout and file
        - ISO format timestamps for consistency
        - Credential envelopes redacted on every handler
    """
    # Create logs directory if it doesn't exist
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # ISO format: [YYYY-MM-DD HH:MM:SS]
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redaction = CredentialRedactionFilter()
    log_level = get_log_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    file_handler = logging.FileHandler(log_path)
    for handler in (stdout_handler, file_handler):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
        root_logger.addHandler(handler)
