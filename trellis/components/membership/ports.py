"""
Membership component port definitions.
"""

from __future__ import annotations

from trellis.ports.clock import ClockPort
from trellis.ports.repo import MemberRepoPort

__all__ = ["ClockPort", "MemberRepoPort"]
