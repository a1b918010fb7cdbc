"""Group invitation API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from newsflash import GroupRef

from app.api.deps import get_current_user, get_services
from app.database import get_db
from app.models import Group, GroupInvitation, GroupMember, InvitationStatus, User
from app.schemas import GroupInvitationCreate, GroupInvitationRead
from app.services import NewsflashServices

router = APIRouter(prefix="/groups", tags=["groups"])


def _get_member(group_id: int, user_id: int, db: Session) -> GroupMember | None:
    return db.get(GroupMember, (group_id, user_id))


@router.post(
    "/{group_id}/invitations",
    response_model=GroupInvitationRead,
    status_code=status.HTTP_201_CREATED,
)
async def invite_to_group(
    group_id: int,
    payload: GroupInvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> GroupInvitation:
    """Invite an account to a group the caller belongs to."""

    group = db.get(Group, group_id)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    if _get_member(group.id, current_user.id, db) is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a group member")
    if db.get(User, payload.invitee_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if _get_member(group.id, payload.invitee_id, db) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already a group member")

    stmt = select(GroupInvitation).where(
        GroupInvitation.group_id == group.id,
        GroupInvitation.invitee_id == payload.invitee_id,
    )
    invitation = db.execute(stmt).scalar_one_or_none()
    if invitation is not None and invitation.status == InvitationStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invitation already pending")
    if invitation is None:
        invitation = GroupInvitation(group_id=group.id, invitee_id=payload.invitee_id)
        db.add(invitation)
    invitation.inviter_id = current_user.id
    invitation.status = InvitationStatus.PENDING
    db.commit()
    db.refresh(invitation)

    services.orchestrator.on_group_invitation_sent(
        GroupRef(id=group.id, name=group.name),
        inviter_id=current_user.id,
        invitee_id=invitation.invitee_id,
    )
    return invitation
