from fastapi import APIRouter

from app.api.friends import router as friends_router
from app.api.groups import router as groups_router
from app.api.newsflashes import router as newsflashes_router
from app.api.notifications import router as notifications_router

router = APIRouter()

router.include_router(newsflashes_router)
router.include_router(friends_router)
router.include_router(groups_router)
router.include_router(notifications_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the Newsflash API"}
