"""
curvelaunch - Structured Logging

Curve modules log through ``logging.getLogger(__name__)`` and pass their
payload as ``extra={"event": "curve.buy", "curve": ..., "units": ...}``.
This module turns those records into JSON lines:

- ``component`` is taken from the event prefix (curve, oracle, factory, ...)
- address fields (curve, asset, buyer, ...) are grouped under ``context``
- wei and USD amounts beyond the JSON-safe integer range are written as
  decimal strings so log consumers keep every digit

Handlers are driven by the ``logging`` section of the configuration:

    manager = ConfigManager(environment="testnet")
    setup_logging(manager.logging, environment=manager.environment.value)
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from pythonjsonlogger import jsonlogger

if TYPE_CHECKING:
    from ..config_manager import LoggingConfig

PACKAGE_LOGGER = "curvelaunch"

# Largest integer a double-precision JSON reader represents exactly
MAX_SAFE_INTEGER = 2**53 - 1

CONTEXT_FIELDS = (
    "curve",
    "asset",
    "token",
    "sink",
    "buyer",
    "seller",
    "creator",
    "caller",
    "holder",
)


class CurveJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for curve events.

    Args:
        environment: Deployment environment stamped on every record
        service_name: Service name stamped on every record
    """

    def __init__(self, environment: str = "development", service_name: str = PACKAGE_LOGGER):
        super().__init__(fmt="%(timestamp)s %(level)s %(name)s %(message)s")
        self.environment = environment
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        event = log_record.get("event")
        if isinstance(event, str) and "." in event:
            log_record["component"] = event.split(".", 1)[0]

        context = {key: log_record.pop(key) for key in CONTEXT_FIELDS if key in log_record}
        if context:
            log_record["context"] = context

        for key, value in list(log_record.items()):
            if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
                log_record[key] = str(value)

        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    settings: Optional["LoggingConfig"] = None,
    environment: str = "development",
    level: Optional[str] = None,
    name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Install JSON handlers on the package logger.

    Args:
        settings: ``logging`` configuration section; console-only when omitted
        environment: Environment identifier stamped on records
        level: Overrides ``settings.level`` (e.g. from a CLI flag)
        name: Logger to configure

    Returns:
        The configured logger
    """
    level_name = (level or (settings.level if settings else "WARNING")).upper()
    log_level = getattr(logging, level_name)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Reconfiguration replaces earlier handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = CurveJsonFormatter(environment=environment, service_name=name.split(".")[0])

    if settings is None or settings.enable_console_logging:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if settings is not None and settings.enable_file_logging:
        try:
            Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=settings.log_file,
                maxBytes=settings.max_log_size,
                backupCount=settings.backup_count,
            )
        except OSError as e:
            logger.warning(
                "Could not create file handler for %s: %s",
                settings.log_file,
                e,
                extra={"event": "logging.file_handler_failed"},
            )
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
