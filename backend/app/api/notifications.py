"""Push token registration and test notification endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from newsflash.push.payloads import TEST_KINDS

from app.api.deps import get_current_user, get_services
from app.models import User
from app.schemas import (
    NotificationResult,
    NotificationTestRequest,
    PushTokenRegister,
    PushTokenUnregister,
)
from app.services import NewsflashServices

router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)


@router.post("/register-token", response_model=NotificationResult)
def register_push_token(
    payload: PushTokenRegister,
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> NotificationResult:
    """Register (or reactivate) the caller's device push token."""

    services.push_tokens.register(
        current_user.id,
        payload.push_token,
        device_id=payload.device_id,
        platform=payload.platform.value if payload.platform else None,
    )
    logger.info("Registered push token for account %s", current_user.id)
    return NotificationResult(message="Push token registered")


@router.delete("/unregister-token", response_model=NotificationResult)
def unregister_push_token(
    payload: PushTokenUnregister,
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> NotificationResult:
    """Deactivate a push token; unknown tokens are accepted silently."""

    services.push_tokens.deactivate(current_user.id, payload.push_token)
    return NotificationResult(message="Push token unregistered")


@router.post("/test", response_model=NotificationResult)
async def send_test_notification(
    payload: NotificationTestRequest,
    current_user: User = Depends(get_current_user),
    services: NewsflashServices = Depends(get_services),
) -> NotificationResult:
    """Send a placeholder notification to the caller's own devices."""

    if payload.type not in TEST_KINDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported test notification type",
        )
    if not services.push_tokens.has_active_tokens(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No push tokens registered for this user",
        )

    report = await services.dispatcher.send_test(current_user.id, payload.type)
    return NotificationResult(
        message="Test notification sent",
        accepted=report.accepted,
        rejected=report.rejected,
    )
