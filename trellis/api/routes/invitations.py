from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from trellis.api.deps import get_current_user, get_invitation_workflow
from trellis.api.schemas import (
    ApiResponse,
    InvitationCreateRequest,
    InvitationResponse,
    InvitationTokenRequest,
    MemberResponse,
    dump,
)
from trellis.components.invitations import (
    AcceptInvitationInput,
    CreateInvitationInput,
    DeclineInvitationInput,
    InvitationWorkflow,
    run_accept,
    run_create,
    run_decline,
)
from trellis.domain.entities import Invitation, User

# Mounted under /api/boards
board_router = APIRouter()

# Mounted under /api/invitations
router = APIRouter()


def _invitation_data(invitation: Invitation, **extra: object) -> dict[str, object]:
    return dump(
        InvitationResponse(
            invitation_id=invitation.id,
            board_id=invitation.board_id,
            member_email=invitation.member_email,
            status=invitation.status,
            **extra,
        )
    )


@board_router.post(
    "/{board_id}/invitations",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invitation(
    board_id: UUID,
    req: InvitationCreateRequest,
    current_user: User = Depends(get_current_user),
    workflow: InvitationWorkflow = Depends(get_invitation_workflow),
) -> ApiResponse:
    """Invite a registered user to the board by email."""
    inp = CreateInvitationInput(board_id=board_id, member_email=req.member_email, actor=current_user)
    result = run_create(inp, workflow)
    if not result.success or result.invitation is None:
        raise HTTPException(status_code=result.status_code, detail=result.error)

    return ApiResponse(
        status=result.status_code,
        message=result.message,
        warning=result.warning,
        data=_invitation_data(
            result.invitation, token=result.token, notification=result.notification
        ),
    )


@router.post("/accept", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def accept_invitation(
    req: InvitationTokenRequest,
    current_user: User = Depends(get_current_user),
    workflow: InvitationWorkflow = Depends(get_invitation_workflow),
) -> ApiResponse:
    """Join a board with an invitation token."""
    result = run_accept(AcceptInvitationInput(token=req.token, actor=current_user), workflow)
    if not result.success or result.member is None:
        raise HTTPException(status_code=result.status_code, detail=result.error)

    return ApiResponse(
        status=result.status_code,
        message=result.message,
        data=dump(MemberResponse.from_member(result.member)),
    )


@router.post("/decline", response_model=ApiResponse)
def decline_invitation(
    req: InvitationTokenRequest,
    current_user: User = Depends(get_current_user),
    workflow: InvitationWorkflow = Depends(get_invitation_workflow),
) -> ApiResponse:
    result = run_decline(DeclineInvitationInput(token=req.token, actor=current_user), workflow)
    if not result.success or result.invitation is None:
        raise HTTPException(status_code=result.status_code, detail=result.error)

    return ApiResponse(
        status=result.status_code,
        message=result.message,
        data=_invitation_data(result.invitation),
    )
