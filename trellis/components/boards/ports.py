"""
Boards component port definitions.
"""

from __future__ import annotations

from trellis.ports.cache import CachePort
from trellis.ports.clock import ClockPort
from trellis.ports.repo import BoardRepoPort, MemberRepoPort

__all__ = ["BoardRepoPort", "CachePort", "ClockPort", "MemberRepoPort"]
