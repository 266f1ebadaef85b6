from fastapi import APIRouter
from .auth import router as auth_router
from .api_keys import router as api_keys_router
from .admin import router as admin_router
from .receipts import router as receipts_router
from .logs import router as logs_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(api_keys_router)
router.include_router(admin_router)
router.include_router(receipts_router)
router.include_router(logs_router)
