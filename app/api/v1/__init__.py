from fastapi import APIRouter

from app.api.v1.routers import health, loan_reviews

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(loan_reviews.router)

__all__ = ["api_router"]
