"""Recipient resolution for newly created posts."""

from __future__ import annotations

import logging
from typing import Iterable

from .interfaces import SocialDirectory

logger = logging.getLogger(__name__)


def resolve_audience(
    directory: SocialDirectory,
    author_id: int,
    direct_recipient_ids: Iterable[int] = (),
    group_ids: Iterable[int] = (),
) -> set[int]:
    """Return the deduplicated set of accounts that should receive a post.

    The audience is the union of the direct recipients and the current members
    of every recipient group. A post that names neither falls back to every
    friend of the author. The author is never part of the result.

    Group ids that do not resolve contribute nothing; they are logged as a
    warning instead of failing the resolution.
    """

    direct = {int(account_id) for account_id in direct_recipient_ids}
    groups = list(dict.fromkeys(int(group_id) for group_id in group_ids))

    if not direct and not groups:
        audience = set(directory.get_friend_ids(author_id))
    else:
        audience = set(direct)
        missing: list[int] = []
        for group_id in groups:
            members = directory.get_group_member_ids(group_id)
            if not members and not directory.group_exists(group_id):
                missing.append(group_id)
                continue
            audience.update(members)
        if missing:
            logger.warning(
                "Ignoring unknown group ids %s while resolving audience for author %s",
                missing,
                author_id,
            )

    audience.discard(author_id)
    return audience


class AudienceResolver:
    """Binds :func:`resolve_audience` to a social directory."""

    def __init__(self, directory: SocialDirectory) -> None:
        self._directory = directory

    def resolve(
        self,
        author_id: int,
        direct_recipient_ids: Iterable[int] = (),
        group_ids: Iterable[int] = (),
    ) -> set[int]:
        return resolve_audience(self._directory, author_id, direct_recipient_ids, group_ids)
