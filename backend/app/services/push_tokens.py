"""Persistence of device push tokens."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import func, select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql.dml import Insert

from app.models import PushToken

logger = logging.getLogger(__name__)


def _upsert_statement(dialect_name: str, values: dict[str, Any]) -> Insert:
    """Build a single-statement insert-or-reactivate keyed on (user_id, push_token)."""

    if dialect_name in {"mysql", "mariadb"}:
        stmt = mysql_insert(PushToken).values(**values)
        return stmt.on_duplicate_key_update(
            device_id=stmt.inserted.device_id,
            platform=stmt.inserted.platform,
            is_active=True,
            updated_at=func.now(),
        )
    if dialect_name == "sqlite":
        stmt = sqlite_insert(PushToken).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[PushToken.user_id, PushToken.push_token],
            set_={
                "device_id": stmt.excluded.device_id,
                "platform": stmt.excluded.platform,
                "is_active": True,
                "updated_at": func.now(),
            },
        )
    raise NotImplementedError(f"Push token upsert is not supported on {dialect_name!r}")


class SqlPushTokenStore:
    """Register, deactivate and look up push tokens.

    A token is unique per account. Registering a token from a device that
    already had a different active token deactivates the older one, so each
    device keeps at most one active address.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def register(
        self,
        account_id: int,
        token: str,
        device_id: str | None = None,
        platform: str | None = None,
    ) -> None:
        with self._session_factory() as db:
            db.execute(
                _upsert_statement(
                    db.get_bind().dialect.name,
                    {
                        "user_id": account_id,
                        "push_token": token,
                        "device_id": device_id,
                        "platform": platform,
                        "is_active": True,
                    },
                )
            )

            if device_id:
                superseded = db.execute(
                    update(PushToken)
                    .where(
                        PushToken.user_id == account_id,
                        PushToken.device_id == device_id,
                        PushToken.push_token != token,
                        PushToken.is_active.is_(True),
                    )
                    .values(is_active=False)
                    .execution_options(synchronize_session=False)
                )
                if superseded.rowcount:
                    logger.info(
                        "Superseded %s push token(s) of account %s on device %s",
                        superseded.rowcount,
                        account_id,
                        device_id,
                    )

            db.commit()

    def deactivate(self, account_id: int, token: str) -> bool:
        with self._session_factory() as db:
            result = db.execute(
                update(PushToken)
                .where(
                    PushToken.user_id == account_id,
                    PushToken.push_token == token,
                    PushToken.is_active.is_(True),
                )
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return bool(result.rowcount)

    def active_tokens_for(self, account_ids: Iterable[int]) -> list[str]:
        ids = sorted(set(account_ids))
        if not ids:
            return []
        stmt = (
            select(PushToken.push_token)
            .where(PushToken.user_id.in_(ids), PushToken.is_active.is_(True))
            .order_by(PushToken.id)
        )
        with self._session_factory() as db:
            return list(db.execute(stmt).scalars())

    def has_active_tokens(self, account_id: int) -> bool:
        return bool(self.active_tokens_for([account_id]))

    def retire(self, token: str) -> int:
        """Deactivate *token* for every account it is registered to."""

        with self._session_factory() as db:
            result = db.execute(
                update(PushToken)
                .where(PushToken.push_token == token, PushToken.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return int(result.rowcount or 0)
