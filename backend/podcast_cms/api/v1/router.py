from fastapi import APIRouter

from podcast_cms.api.v1 import auth, episodes, import_routes, media, translations

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(episodes.router, prefix="/episodes", tags=["episodes"])
api_router.include_router(import_routes.router, prefix="/import", tags=["import"])
api_router.include_router(translations.router, prefix="/translations", tags=["translations"])
api_router.include_router(media.router, prefix="/media", tags=["media"])
