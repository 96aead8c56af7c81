from fastapi import APIRouter

from kpi_dashboard.api.routes import dashboard, offices

api_router = APIRouter()
api_router.include_router(offices.router)
api_router.include_router(dashboard.router)
