"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1.cron.routes import router as cron_router
from app.api.v1.learning.routes import router as learning_router
from app.api.v1.performance.routes import router as performance_router
from app.api.v1.prompts.routes import router as prompts_router

api_router = APIRouter()

api_router.include_router(learning_router, prefix="/learning", tags=["Learning"])
api_router.include_router(performance_router, prefix="/performance", tags=["Performance"])
api_router.include_router(prompts_router, prefix="/prompts", tags=["Prompts"])
api_router.include_router(cron_router, prefix="/cron", tags=["Cron"])
