from fastapi import APIRouter, Depends

from studybuddy.core.config import Settings
from studybuddy.core.deps import get_app_settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health(s: Settings = Depends(get_app_settings)):
    return {"status": "ok", "version": s.APP_VERSION}


@router.get("/version")
def version(s: Settings = Depends(get_app_settings)):
    return {"name": s.APP_NAME, "version": s.APP_VERSION, "env": s.APP_ENV}
