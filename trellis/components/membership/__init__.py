"""
Membership component - board membership checks and admission.
"""

from .guard import NOT_A_MEMBER_MESSAGE, MembershipGuard
from .ports import ClockPort, MemberRepoPort

__all__ = [
    "MembershipGuard",
    "NOT_A_MEMBER_MESSAGE",
    # Ports
    "ClockPort",
    "MemberRepoPort",
]
