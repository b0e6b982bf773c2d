"""Logging setup for the reservation engine.

Every record carries the correlation id of the request or background job
that produced it, so one booking can be followed across the API, the
lifecycle manager and the realtime reconciler:

    logger = get_logger(__name__)
    set_correlation_id(request.headers.get("X-Correlation-ID"))
    logger.info("Approving reservation", extra={"reservation_id": 42})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Results that are worth a warning rather than an info line
_WARN_RESULTS = frozenset({"skipped", "stale", "ignored"})


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context, generating one if absent."""
    value = correlation_id or generate_correlation_id()
    _correlation_id.set(value)
    return value


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def _current_id() -> str:
    return _correlation_id.get() or NO_CORRELATION_ID


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id`` from the active context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _current_id()
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each formatted line with ``[<correlation id>]``."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None) or _current_id()
        return f"[{correlation_id}] {super().format(record)}"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def configure_logging(level: str = "INFO") -> None:
    """Attach one structured stream handler to the root logger.

    Calling it again only changes the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def _emit(
    logger: logging.Logger,
    headline: str,
    fields: list[tuple[str, Any]],
    context: dict[str, Any],
    result: str | None,
    error: str | None,
) -> None:
    message = " | ".join([headline, *(f"{key}={value}" for key, value in fields)])
    if error or result == "error":
        logger.error(message, extra=context)
    elif result in _WARN_RESULTS:
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_reservation_operation(
    logger: logging.Logger,
    operation: str,
    *,
    reservation_id: int | None = None,
    room_id: int | None = None,
    staff_id: int | None = None,
    status: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one step of a reservation's lifecycle.

    The level follows the outcome: ``error`` (or any error text) logs an
    error, ``skipped`` a warning, anything else info. Unset fields are
    left out of both the message and ``extra``.

    Args:
        logger: Logger to write to
        operation: Step name, e.g. "create", "update_status", "auto_checkout"
        reservation_id: Reservation the step acted on
        room_id: Room involved, if any
        staff_id: Acting staff member, if any
        status: Target or resulting status value
        result: Outcome label
        error: Error text when the step failed
        **extra: Further context fields, appended as given
    """
    candidates = {
        "reservation_id": reservation_id,
        "room_id": room_id,
        "staff_id": staff_id,
        "status": status or None,
        "result": result or None,
        "error": error or None,
    }
    fields = [(key, value) for key, value in candidates.items() if value is not None]
    fields.extend(extra.items())
    context = {"operation": operation, **dict(fields)}
    _emit(logger, f"Reservation operation: {operation}", fields, context, result, error)


def log_realtime_event(
    logger: logging.Logger,
    table: str,
    event_type: str,
    *,
    row_id: int | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log how a change notification was handled.

    ``result`` is one of patched, refetched, stale, ignored or error.
    """
    shown = [("row", row_id), ("result", result or None), ("error", error or None)]
    fields = [(key, value) for key, value in shown if value is not None]
    context: dict[str, Any] = {"table": table, "event_type": event_type}
    if row_id is not None:
        context["row_id"] = row_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error
    context.update(extra)
    # Realtime errors are reported via result; error text alone stays informational
    level_error = error if result == "error" else None
    _emit(logger, f"Realtime event: {table} {event_type}", fields, context, result, level_error)
