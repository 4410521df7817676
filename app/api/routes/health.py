from fastapi import APIRouter

from app.config.settings import settings

router = APIRouter()


@router.get("/")
async def root():
    return {"status": "ok", "message": "MongoDB Explorer API is running"}


@router.get("/health")
async def health():
    return {"status": "ok", "service": settings.APP_NAME, "environment": settings.ENVIRONMENT}
