"""
Invitations component - Shell Layer.

Entry points wrap InvitationWorkflow and turn DomainError into output objects
carrying the HTTP status the API layer answers with.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from trellis.domain.errors import DomainError

from ._impl import InvitationWorkflow
from .models import (
    AcceptInvitationInput,
    CreateInvitationInput,
    DeclineInvitationInput,
    InvitationOutput,
    MembershipOutput,
)

logger = logging.getLogger(__name__)

INVITATION_SENT_MESSAGE = "Invitation sent successfully."
NOTIFICATION_PENDING_WARNING = "Invitation created, notification pending."
NOTIFICATION_QUEUED_WARNING = "Invitation created, notification queued."
JOINED_MESSAGE = "Joined the board successfully."
DECLINED_MESSAGE = "Invitation declined."


def run_create(inp: CreateInvitationInput, workflow: InvitationWorkflow) -> InvitationOutput:
    try:
        created = workflow.create_invitation(inp.board_id, inp.member_email, inp.actor)
    except DomainError as e:
        return InvitationOutput(status_code=e.status_code, error=e.message)

    warning = None
    if created.notification == "pending":
        warning = NOTIFICATION_PENDING_WARNING
    elif created.notification == "queued":
        warning = NOTIFICATION_QUEUED_WARNING

    return InvitationOutput(
        success=True,
        status_code=HTTPStatus.CREATED,
        message=INVITATION_SENT_MESSAGE,
        token=created.invitation.token,
        invitation=created.invitation,
        notification=created.notification,
        warning=warning,
    )


def run_accept(inp: AcceptInvitationInput, workflow: InvitationWorkflow) -> MembershipOutput:
    try:
        invitation, member = workflow.accept_invitation(inp.token, inp.actor)
    except DomainError as e:
        return MembershipOutput(status_code=e.status_code, error=e.message)

    return MembershipOutput(
        success=True,
        status_code=HTTPStatus.CREATED,
        message=JOINED_MESSAGE,
        member=member,
        invitation=invitation,
    )


def run_decline(inp: DeclineInvitationInput, workflow: InvitationWorkflow) -> MembershipOutput:
    try:
        invitation = workflow.decline_invitation(inp.token, inp.actor)
    except DomainError as e:
        return MembershipOutput(status_code=e.status_code, error=e.message)

    return MembershipOutput(
        success=True,
        status_code=HTTPStatus.OK,
        message=DECLINED_MESSAGE,
        invitation=invitation,
    )


def run(
    inp: CreateInvitationInput | AcceptInvitationInput | DeclineInvitationInput,
    *,
    workflow: InvitationWorkflow,
) -> InvitationOutput | MembershipOutput:
    if isinstance(inp, CreateInvitationInput):
        return run_create(inp, workflow)

    elif isinstance(inp, AcceptInvitationInput):
        return run_accept(inp, workflow)

    elif isinstance(inp, DeclineInvitationInput):
        return run_decline(inp, workflow)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
