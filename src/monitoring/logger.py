"""Structured logging for listing acquisition."""

import json
import logging
from typing import Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "storefront", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, source, request_id, status, category,
                      elapsed_ms, mode
        """
        log_data = {"event": event, **kwargs}
        self.logger.log(level, json.dumps(log_data, default=str))

    def fetch_start(self, source: str, request_id: int) -> None:
        self.log("fetch_start", level=logging.DEBUG, source=source, request_id=request_id)

    def fetch_success(self, source: str, request_id: int, records: int, elapsed_ms: float) -> None:
        self.log(
            "fetch_success",
            source=source,
            request_id=request_id,
            records=records,
            elapsed_ms=round(elapsed_ms, 2)
        )

    def fetch_error(self, source: str, request_id: int, status: Optional[int], category: str, error: str) -> None:
        self.log(
            "fetch_error",
            level=logging.WARNING,
            source=source,
            request_id=request_id,
            status=status,
            category=category,
            error=error
        )

    def source_switched(self, from_mode: str, to_mode: str, category: str) -> None:
        self.log("source_switched", level=logging.WARNING, mode=to_mode, previous=from_mode, category=category)

    def stale_result_dropped(self, source: str, request_id: int, latest_id: int) -> None:
        self.log("stale_result_dropped", level=logging.DEBUG, source=source, request_id=request_id, latest_id=latest_id)

    def mode_reset(self, mode: str) -> None:
        self.log("mode_reset", mode=mode)
