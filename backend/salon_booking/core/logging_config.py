"""
Centralized logging configuration for the salon booking backend.

Provides:
- JSON formatting for production and log files
- Colored console formatting for development
- Rotating file handlers (app log + error-only log)
- Request/response logging with a per-request id
- Optional SQL timing logs

Usage:
    from salon_booking.core.logging_config import setup_logging

    setup_logging(app, log_level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Appointment booked", extra={"context": {"appointment_id": 7}})
"""

import copy
import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, g, request
from sqlalchemy import event
from sqlalchemy.engine import Engine

DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"


class JSONFormatter(logging.Formatter):
    """Outputs each record as one JSON object with any `context` extra."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_data["context"] = getattr(record, "context", {})

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with colors for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so file handlers sharing the record stay uncolored
        record = copy.copy(record)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        message = super().format(record)
        context = getattr(record, "context", None)
        if context:
            message = f"{message} | {json.dumps(context, default=str)}"
        return message


def _add_rotating_handler(
    root_logger: logging.Logger,
    path: Path,
    level: int,
    formatter: logging.Formatter,
    fallback: logging.Handler,
) -> None:
    try:
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as e:
        fallback.handle(
            logging.LogRecord(
                name="salon_booking.logging",
                level=logging.WARNING,
                pathname=__file__,
                lineno=0,
                msg=f"Failed to create file handler for {path.name}: {e}. "
                "Falling back to console-only logging.",
                args=(),
                exc_info=None,
            )
        )
        return
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = True,
    use_json_format: bool = False,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure logging for the process and, when given, the Flask app.

    Args:
        app: Flask application instance (registers request/response hooks)
        log_level: Logging level name or number
        enable_sql_echo: Log SQL statements with their duration
        log_to_file: Write logs to rotating files
        use_json_format: Use JSON on the console instead of colored text
        log_dir: Directory for log files (default: <backend>/logs)
    """
    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if use_json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ConsoleFormatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    if log_to_file:
        target_dir = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            root_logger.warning(
                f"Failed to create logs directory: {e}. Logging will only go to console.",
                extra={"context": {"component": "logging_setup"}},
            )
        else:
            file_formatter = JSONFormatter()
            _add_rotating_handler(
                root_logger, target_dir / "app.log", level, file_formatter, console_handler
            )
            _add_rotating_handler(
                root_logger,
                target_dir / "salon_errors.log",
                logging.ERROR,
                file_formatter,
                console_handler,
            )

    if enable_sql_echo and not getattr(Engine, "_salon_sql_timing", False):

        @event.listens_for(Engine, "before_cursor_execute")
        def before_cursor_execute(
            conn, cursor, statement, parameters, context, executemany
        ):
            conn.info.setdefault("query_start_time", []).append(time.perf_counter())

        @event.listens_for(Engine, "after_cursor_execute")
        def after_cursor_execute(
            conn, cursor, statement, parameters, context, executemany
        ):
            starts = conn.info.get("query_start_time")
            if not starts:
                return
            total_ms = (time.perf_counter() - starts.pop(-1)) * 1000
            logging.getLogger("sqlalchemy.performance").debug(
                f"Query executed in {total_ms:.2f}ms",
                extra={
                    "context": {
                        "sql_query": statement[:500],
                        "sql_duration_ms": round(total_ms, 2),
                    }
                },
            )

        setattr(Engine, "_salon_sql_timing", True)

    if app is not None:

        @app.before_request
        def log_request():
            g.request_start_time = time.time()
            g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
            logging.getLogger("flask.request").info(
                f"{request.method} {request.path}",
                extra={
                    "context": {
                        "request_id": g.request_id,
                        "method": request.method,
                        "path": request.path,
                        "remote_addr": request.remote_addr,
                    }
                },
            )

        @app.after_request
        def log_response(response):
            if hasattr(g, "request_start_time"):
                duration_ms = (time.time() - g.request_start_time) * 1000
                logging.getLogger("flask.response").info(
                    f"{request.method} {request.path} {response.status_code} in {duration_ms:.2f}ms",
                    extra={
                        "context": {
                            "request_id": g.get("request_id"),
                            "status_code": response.status_code,
                            "duration_ms": round(duration_ms, 2),
                        }
                    },
                )
                response.headers["X-Request-ID"] = g.get("request_id", "")
            return response

    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger("salon_booking").info(
        f"Logging configured: level={logging.getLevelName(level)}, sql_echo={enable_sql_echo}, "
        f"log_to_file={log_to_file}, json_format={use_json_format}"
    )
