"""Logging helpers for lockerdrop.

The library never configures handlers itself; applications do. These
helpers only keep the shape of audit log lines consistent so that job
state changes can be grepped out of mixed logs.
"""

import logging
from typing import Any, Optional

audit_logger = logging.getLogger("lockerdrop.audit")


def _format_fields(**fields: Any) -> str:
    return " | ".join(f"{k}={v}" for k, v in fields.items() if v is not None)


def log_transition(
    job_id: str,
    from_status: Optional[str],
    to_status: str,
    actor_id: Optional[str],
    **extra: Any,
) -> None:
    """Log a job state transition."""
    audit_logger.info(
        "job_transition | %s",
        _format_fields(
            job=job_id, from_status=from_status, to_status=to_status, actor=actor_id, **extra
        ),
    )


def log_rejected(job_id: str, operation: str, actor_id: Optional[str], reason: str) -> None:
    """Log an operation the lifecycle rules refused."""
    audit_logger.warning(
        "job_rejected | %s",
        _format_fields(job=job_id, op=operation, actor=actor_id, reason=reason),
    )
