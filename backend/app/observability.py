"""
Error tracking backed by Sentry.

Usage:
    from app.observability import error_tracker

    error_tracker.capture_error(
        exc,
        context={"path": "/v1/tests/1/complete", "method": "POST"},
        tags={"error_type": "StaleDataError"},
    )

All methods are no-ops until `init()` succeeds, so tests and local runs
without a DSN never talk to Sentry.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

logger = logging.getLogger(__name__)


def _serialize_value(value: Any) -> Any:
    """Convert a context value to a JSON-compatible type."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(item) for item in value]
    return str(value)


class ErrorTracker:
    """Thin wrapper around the Sentry SDK."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(
        self,
        dsn: str,
        *,
        environment: str,
        release: Optional[str] = None,
        traces_sample_rate: float = 0.1,
    ) -> bool:
        """Initialize the Sentry SDK with FastAPI/Starlette integrations.

        Returns:
            True if Sentry was initialized, False if skipped (no DSN) or failed.
        """
        if not dsn:
            logger.debug("Sentry initialization skipped (DSN not configured)")
            return False

        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=environment,
                release=release,
                traces_sample_rate=traces_sample_rate,
                integrations=[
                    LoggingIntegration(level=None, event_level=None),
                    FastApiIntegration(transaction_style="endpoint"),
                    StarletteIntegration(transaction_style="endpoint"),
                ],
                send_default_pii=False,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
            return False

        self._initialized = True
        logger.info(
            f"Sentry initialized for environment '{environment}' "
            f"with {traces_sample_rate * 100:.0f}% trace sampling"
        )
        return True

    def capture_error(
        self,
        exception: BaseException,
        *,
        context: Optional[Dict[str, Any]] = None,
        level: str = "error",
        tags: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Capture an exception and send it to Sentry.

        Returns:
            Event ID if captured, None if not initialized.
        """
        if not self._initialized:
            return None

        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context(
                    "additional", {k: _serialize_value(v) for k, v in context.items()}
                )
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            scope.level = level
            return sentry_sdk.capture_exception(exception)

    def shutdown(self, timeout: float = 2.0) -> None:
        """Flush pending events before the process exits."""
        if not self._initialized:
            return
        sentry_sdk.flush(timeout=timeout)
        self._initialized = False


error_tracker = ErrorTracker()
