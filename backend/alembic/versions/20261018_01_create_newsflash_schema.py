"""create newsflash schema

Revision ID: 20261018_01
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


FRIEND_REQUEST_STATUS = sa.Enum("pending", "accepted", "rejected", name="friend_request_status")
GROUP_INVITATION_STATUS = sa.Enum("pending", "accepted", "rejected", name="group_invitation_status")
GROUP_ROLE = sa.Enum("admin", "member", name="group_role")


def _timestamps(*, with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        )
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                onupdate=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("display_name", sa.String(length=128), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_picture", sa.String(length=512), nullable=True),
        *_timestamps(),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "friends",
        sa.Column("user_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("friend_id", sa.Integer(), primary_key=True, nullable=False),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["friend_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("status", FRIEND_REQUEST_STATUS, nullable=False, server_default="pending"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_friend_request_pair"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_friend_requests_receiver", "friend_requests", ["receiver_id"])

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("creator_id", sa.Integer(), nullable=False),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "group_members",
        sa.Column("group_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("role", GROUP_ROLE, nullable=False, server_default="member"),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_members_user", "group_members", ["user_id"])

    op.create_table(
        "group_invitations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("inviter_id", sa.Integer(), nullable=False),
        sa.Column("invitee_id", sa.Integer(), nullable=False),
        sa.Column("status", GROUP_INVITATION_STATUS, nullable=False, server_default="pending"),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inviter_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invitee_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "invitee_id", name="uq_group_invitation"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_invitations_invitee", "group_invitations", ["invitee_id"])

    op.create_table(
        "sections",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "newsflashes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_newsflashes_author", "newsflashes", ["author_id"])
    op.create_index("ix_newsflashes_created", "newsflashes", ["created_at"])

    op.create_table(
        "newsflash_recipients",
        sa.Column("newsflash_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(["newsflash_id"], ["newsflashes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "newsflash_groups",
        sa.Column("newsflash_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.Integer(), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(["newsflash_id"], ["newsflashes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "newsflash_sections",
        sa.Column("newsflash_id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("section_id", sa.Integer(), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(["newsflash_id"], ["newsflashes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["section_id"], ["sections.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("newsflash_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["newsflash_id"], ["newsflashes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_comments_newsflash", "comments", ["newsflash_id"])

    op.create_table(
        "user_push_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("push_token", sa.String(length=255), nullable=False),
        sa.Column("device_id", sa.String(length=255), nullable=True),
        sa.Column("platform", sa.String(length=16), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "push_token", name="uq_push_token_user"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_push_tokens_user", "user_push_tokens", ["user_id"])


def downgrade() -> None:
    op.drop_table("user_push_tokens")
    op.drop_table("comments")
    op.drop_table("newsflash_sections")
    op.drop_table("newsflash_groups")
    op.drop_table("newsflash_recipients")
    op.drop_table("newsflashes")
    op.drop_table("sections")
    op.drop_table("group_invitations")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("friend_requests")
    op.drop_table("friends")
    op.drop_table("users")

    GROUP_ROLE.drop(op.get_bind(), checkfirst=False)
    GROUP_INVITATION_STATUS.drop(op.get_bind(), checkfirst=False)
    FRIEND_REQUEST_STATUS.drop(op.get_bind(), checkfirst=False)
