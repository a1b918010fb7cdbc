"""Newsflash and comment API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from newsflash import CommentEvent, PostEvent

from app.api.deps import get_current_user, get_services
from app.database import get_db
from app.models import (
    Comment,
    Group,
    Newsflash,
    NewsflashGroup,
    NewsflashRecipient,
    Section,
    User,
)
from app.schemas import CommentCreate, CommentRead, NewsflashCreate, NewsflashRead
from app.services import NewsflashServices

router = APIRouter(prefix="/newsflashes", tags=["newsflashes"])


def _existing_ids(model, ids: list[int], db: Session) -> list[int]:
    wanted = set(ids)
    if not wanted:
        return []
    found = set(db.execute(select(model.id).where(model.id.in_(wanted))).scalars())
    return sorted(found)


def _get_or_create_sections(names: list[str], db: Session) -> list[Section]:
    unique_names = list(dict.fromkeys(names))
    if not unique_names:
        return []
    existing = {
        section.name: section
        for section in db.execute(select(Section).where(Section.name.in_(unique_names))).scalars()
    }
    sections: list[Section] = []
    for name in unique_names:
        section = existing.get(name)
        if section is None:
            section = Section(name=name)
            db.add(section)
        sections.append(section)
    return sections


def _serialize_newsflash(post: Newsflash) -> NewsflashRead:
    return NewsflashRead(
        id=post.id,
        author_id=post.author_id,
        content=post.content,
        image=post.image,
        sections=[section.name for section in post.sections],
        recipients=sorted(row.user_id for row in post.recipients),
        groups=sorted(row.group_id for row in post.groups),
        created_at=post.created_at,
    )


@router.post("", response_model=NewsflashRead, status_code=status.HTTP_201_CREATED)
async def create_newsflash(
    payload: NewsflashCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> NewsflashRead:
    """Publish a newsflash and fan it out to its audience once committed."""

    recipient_ids = [
        user_id
        for user_id in _existing_ids(User, payload.recipients, db)
        if user_id != current_user.id
    ]
    group_ids = _existing_ids(Group, payload.groups, db)

    post = Newsflash(author_id=current_user.id, content=payload.content, image=payload.image)
    post.sections = _get_or_create_sections(payload.sections, db)
    post.recipients = [NewsflashRecipient(user_id=user_id) for user_id in recipient_ids]
    post.groups = [NewsflashGroup(group_id=group_id) for group_id in group_ids]
    db.add(post)
    db.commit()
    db.refresh(post)

    result = _serialize_newsflash(post)
    services.orchestrator.on_post_created(
        PostEvent(
            id=post.id,
            author_id=post.author_id,
            content=post.content,
            image=post.image,
            recipient_ids=tuple(payload.recipients),
            group_ids=tuple(payload.groups),
            sections=tuple(result.sections),
            created_at=post.created_at,
        )
    )
    return result


@router.post(
    "/{newsflash_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    newsflash_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> Comment:
    """Comment on a newsflash and notify its author and live viewers."""

    post = db.get(Newsflash, newsflash_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Newsflash not found")

    comment = Comment(newsflash_id=post.id, author_id=current_user.id, content=payload.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    services.orchestrator.on_comment_created(
        CommentEvent(
            id=comment.id,
            post_id=post.id,
            author_id=comment.author_id,
            content=comment.content,
            created_at=comment.created_at,
        ),
        post_author_id=post.author_id,
    )
    return comment
