# trellis - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from trellis.core.ports.email import (
    EmailError,
    EmailPort,
    EmailResult,
    EmailStatus,
)

__all__ = [
    "EmailError",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
]
