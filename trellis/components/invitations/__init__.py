"""
Invitations component - token issuance, invitation lifecycle and the
create / accept / decline workflow.
"""

from ._impl import (
    CreatedInvitation,
    InvitationSettings,
    InvitationStateMachine,
    InvitationWorkflow,
    create_invitation_workflow,
    normalize_email,
)
from .component import (
    run,
    run_accept,
    run_create,
    run_decline,
)
from .models import (
    AcceptInvitationInput,
    CreateInvitationInput,
    DeclineInvitationInput,
    InvitationOutput,
    MembershipOutput,
)
from .notifications import InvitationEmail, render_invitation_email
from .ports import (
    BoardRepoPort,
    ClockPort,
    InvitationRepoPort,
    NotificationDispatcherPort,
    UserRepoPort,
)
from .tokens import TokenGenerator

__all__ = [
    # Entry points
    "run",
    "run_create",
    "run_accept",
    "run_decline",
    # Services
    "InvitationStateMachine",
    "InvitationWorkflow",
    "InvitationSettings",
    "CreatedInvitation",
    "TokenGenerator",
    "create_invitation_workflow",
    "normalize_email",
    "InvitationEmail",
    "render_invitation_email",
    # Input models
    "CreateInvitationInput",
    "AcceptInvitationInput",
    "DeclineInvitationInput",
    # Output models
    "InvitationOutput",
    "MembershipOutput",
    # Ports
    "BoardRepoPort",
    "ClockPort",
    "InvitationRepoPort",
    "NotificationDispatcherPort",
    "UserRepoPort",
]
