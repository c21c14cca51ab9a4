from datetime import datetime

from trellis.domain.entities import Invitation, InvitationStatus
from trellis.domain.errors import ConflictError, NotFoundError

INVALID_TOKEN_MESSAGE = "invalid invitation token"
ALREADY_ACCEPTED_MESSAGE = "already accepted"


def can_transition(current: InvitationStatus, new: InvitationStatus) -> bool:
    """
    Determine if an invitation status transition is allowed.

    Only pending invitations move, and only to a terminal status.
    """
    if current == "pending":
        return new in ("accepted", "declined")
    return False


def ensure_pending(invitation: Invitation) -> None:
    """
    Reject accept/decline on a terminal invitation.

    Accepted rows answer with a conflict; declined rows are inert history and
    look exactly like an unknown token.
    """
    if invitation.status == "accepted":
        raise ConflictError(ALREADY_ACCEPTED_MESSAGE)
    if invitation.status == "declined":
        raise NotFoundError(INVALID_TOKEN_MESSAGE)


def transition(invitation: Invitation, new_status: InvitationStatus, now: datetime) -> Invitation:
    """
    Return a NEW Invitation with the updated status and timestamp.
    Raises ConflictError / NotFoundError if the transition is invalid.
    """
    ensure_pending(invitation)
    if not can_transition(invitation.status, new_status):
        raise ConflictError(f"Invalid transition from {invitation.status} to {new_status}")

    return invitation.model_copy(update={"status": new_status, "updated_at": now})
