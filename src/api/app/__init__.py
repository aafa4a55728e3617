from fastapi import APIRouter

from src.api.app.routes.customers import router as customers_router
from src.api.app.routes.home import router as home_router

router = APIRouter()

router.include_router(customers_router)
router.include_router(home_router)
