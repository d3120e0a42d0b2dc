"""
Audit Logger

DESIGN DECISION: Every change to tracker data is logged.
This provides:
1. Complete traceability of edits, deletes and imports
2. Debugging capability when persistence fails
3. Visibility of listener errors that were isolated

The audit logger:
- Is synchronous, like the store that calls it
- Never raises (a logging problem must not break a mutation)
"""

import logging
from typing import Optional

import structlog

from finance_tracker.config import get_config
from finance_tracker.models.audit import AuditEvent, AuditSeverity


def _processors(json: bool) -> list:
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


# Configure structlog for local logging
structlog.configure(
    processors=_processors(json=True),
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(
    level: Optional[str] = None,
    json: Optional[bool] = None,
) -> None:
    """
    Configure package logging for a host application.

    Args:
        level: Standard level name. Defaults to AppSettings.log_level.
        json: JSON rendering when True, console rendering when False.
              Defaults to AppSettings.log_json.
    """
    app_settings = get_config().app
    level = (level or app_settings.log_level).upper()
    json = app_settings.log_json if json is None else json

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("finance_tracker").setLevel(level)

    structlog.reset_defaults()
    structlog.configure(
        processors=_processors(json=json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log.
    """

    def __init__(self, logger_name: str = "finance_tracker.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent, exc_info: bool = False) -> bool:
        """
        Log an audit event.

        Args:
            event: The audit event to log
            exc_info: Attach the exception currently being handled

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", exc_info=exc_info, **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Log failure but don't raise
            logging.getLogger(__name__).exception("audit_log_failed")
            return False

        return True
