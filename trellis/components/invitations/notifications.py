"""
Invitation notification rendering.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from urllib.parse import urlencode

from trellis.domain.entities import Board, Invitation, User


@dataclass(frozen=True)
class InvitationEmail:
    recipient: str
    subject: str
    body_html: str
    body_text: str


def _link(base_url: str, token: str) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


def render_invitation_email(
    board: Board,
    inviter: User,
    invitation: Invitation,
    *,
    subject: str,
    accept_url: str,
    decline_url: str,
) -> InvitationEmail:
    accept_link = _link(accept_url, invitation.token)
    decline_link = _link(decline_url, invitation.token)
    title = html.escape(board.title)
    inviter_name = html.escape(inviter.display_name)

    body_html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Board Invitation</title>
</head>
<body>
    <p>Hello, you have been invited to join <strong>{title}</strong>.</p>
    <p>This invitation was sent by {inviter_name}.</p>
    <p><a href="{html.escape(accept_link)}">Accept the invitation</a></p>
    <p>Not interested? <a href="{html.escape(decline_link)}">Decline the invitation</a></p>
</body>
</html>
"""

    body_text = (
        f"You have been invited to join {board.title} by {inviter.display_name}.\n\n"
        f"Accept: {accept_link}\n"
        f"Decline: {decline_link}\n"
    )

    return InvitationEmail(
        recipient=invitation.member_email,
        subject=subject,
        body_html=body_html,
        body_text=body_text,
    )
