from fastapi import APIRouter

from app.api import admin, analytics, catalog, imports

router = APIRouter()
router.include_router(catalog.router)
router.include_router(analytics.router)
router.include_router(admin.router)
router.include_router(imports.router)
