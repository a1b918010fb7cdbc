"""Database backed view of the social graph used by fan-out."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from app.models import Friendship, Group, GroupMember, User


class SqlSocialDirectory:
    """Answer friend, group and display name lookups with short-lived sessions."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_friend_ids(self, account_id: int) -> set[int]:
        stmt = select(Friendship.friend_id).where(Friendship.user_id == account_id)
        with self._session_factory() as db:
            return set(db.execute(stmt).scalars())

    def get_group_member_ids(self, group_id: int) -> set[int]:
        stmt = select(GroupMember.user_id).where(GroupMember.group_id == group_id)
        with self._session_factory() as db:
            return set(db.execute(stmt).scalars())

    def group_exists(self, group_id: int) -> bool:
        with self._session_factory() as db:
            return db.get(Group, group_id) is not None

    def get_display_name(self, account_id: int) -> str:
        with self._session_factory() as db:
            user = db.get(User, account_id)
            if user is None:
                return "Someone"
            return user.name
