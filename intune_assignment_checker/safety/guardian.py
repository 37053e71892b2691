"""
Read-only guardian — Every Graph request passes through here before it is sent.
The checker only reads directory and device-management data; anything that
could change tenant state is refused.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

logger = logging.getLogger("intune_assignment_checker.safety")

READ_METHODS = {"GET", "HEAD", "OPTIONS"}


class SafetyViolation(Exception):
    """Raised when a non-read request is attempted."""
    pass


class ReadOnlyGuardian:
    """
    Validates outbound HTTP methods and keeps a tally for the run summary.
    """

    def __init__(self):
        self.violations: list[dict] = []
        self.checks_performed: int = 0
        self.started_at: str = datetime.now(timezone.utc).isoformat()

    def validate_request(self, method: str, url: str) -> bool:
        """Return True for read requests, raise SafetyViolation otherwise."""
        self.checks_performed += 1
        method_upper = method.upper()
        if method_upper in READ_METHODS:
            return True

        self.violations.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": method_upper,
            "url": url,
        })
        logger.critical(f"Blocked non-read request: {method_upper} {url}")
        raise SafetyViolation(f"Write method blocked: {method_upper} {url}")

    def get_audit_record(self) -> dict:
        return {
            "mode": "READ-ONLY",
            "started_at": self.started_at,
            "checks_performed": self.checks_performed,
            "violations_detected": len(self.violations),
            "status": "CLEAN" if not self.violations else "VIOLATIONS_DETECTED",
        }
