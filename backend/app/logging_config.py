"""Logging setup for the LockerDrop backend.

Request handlers log one line per call in the form
``METHOD /path | key=value | ...``; job lifecycle events go through
``log_job_event`` so they share that shape.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Install a stderr handler on the root logger. Safe to call twice."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level.upper())
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Supabase's HTTP client logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)


_event_logger = get_logger("lockerdrop.api.events")


def log_job_event(event: str, job_id: str, actor_id: str | None, detail: str = ""):
    """Log a completed job action. Failures are logged by the error handlers."""
    message = f"job_{event} | job={job_id} | actor={actor_id}"
    if detail:
        message += f" | {detail}"
    _event_logger.info(message)
