"""
Lists component port definitions.
"""

from __future__ import annotations

from trellis.ports.clock import ClockPort
from trellis.ports.repo import BoardRepoPort, ListRepoPort

__all__ = ["BoardRepoPort", "ClockPort", "ListRepoPort"]
