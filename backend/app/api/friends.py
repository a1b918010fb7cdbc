"""Friend request API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from newsflash import FriendRequestEvent

from app.api.deps import get_current_user, get_services
from app.database import get_db
from app.models import FriendRequest, FriendRequestStatus, Friendship, User
from app.schemas import FriendRequestRead, OnlineFriendsRead
from app.services import NewsflashServices

router = APIRouter(tags=["friends"])


def _are_friends(user_id: int, other_id: int, db: Session) -> bool:
    stmt = select(Friendship).where(
        Friendship.user_id == user_id, Friendship.friend_id == other_id
    )
    return db.execute(stmt).scalar_one_or_none() is not None


def _ensure_friendship_rows(user_id: int, other_id: int, db: Session) -> None:
    for left, right in ((user_id, other_id), (other_id, user_id)):
        if db.get(Friendship, (left, right)) is None:
            db.add(Friendship(user_id=left, friend_id=right))


@router.post(
    "/users/{user_id}/friend-request",
    response_model=FriendRequestRead,
    status_code=status.HTTP_201_CREATED,
)
async def send_friend_request(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> FriendRequest:
    """Ask another account to become friends."""

    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot send a friend request to yourself",
        )
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if _are_friends(current_user.id, user_id, db):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    stmt = select(FriendRequest).where(
        or_(
            (FriendRequest.sender_id == current_user.id) & (FriendRequest.receiver_id == user_id),
            (FriendRequest.sender_id == user_id) & (FriendRequest.receiver_id == current_user.id),
        )
    )
    existing = db.execute(stmt).scalars().all()
    if any(request.status == FriendRequestStatus.PENDING for request in existing):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Friend request already exists"
        )

    request = next(
        (item for item in existing if item.sender_id == current_user.id),
        None,
    )
    if request is None:
        request = FriendRequest(sender_id=current_user.id, receiver_id=user_id)
        db.add(request)
    request.status = FriendRequestStatus.PENDING
    db.commit()
    db.refresh(request)

    services.orchestrator.on_friend_request_sent(
        FriendRequestEvent(id=request.id, sender_id=request.sender_id, receiver_id=request.receiver_id)
    )
    return request


@router.post("/friend-requests/{request_id}/accept", response_model=FriendRequestRead)
async def accept_friend_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> FriendRequest:
    """Accept a pending request addressed to the caller."""

    request = db.get(FriendRequest, request_id)
    if request is None or request.receiver_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")
    if request.status != FriendRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Friend request is no longer pending"
        )

    request.status = FriendRequestStatus.ACCEPTED
    _ensure_friendship_rows(request.sender_id, request.receiver_id, db)
    db.commit()
    db.refresh(request)

    services.orchestrator.on_friend_request_accepted(current_user.id, request.sender_id)
    return request


@router.get("/users/me/online-friends", response_model=OnlineFriendsRead)
def list_online_friends(
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> OnlineFriendsRead:
    """Return the caller's friends that currently hold a live connection."""

    return OnlineFriendsRead(friend_ids=services.channel.online_friend_ids(current_user.id))
