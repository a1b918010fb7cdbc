"""Application service helpers."""

from .container import NewsflashServices, build_services
from .directory import SqlSocialDirectory
from .push_tokens import SqlPushTokenStore

__all__ = [
    "NewsflashServices",
    "build_services",
    "SqlSocialDirectory",
    "SqlPushTokenStore",
]
