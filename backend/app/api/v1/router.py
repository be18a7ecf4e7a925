from fastapi import APIRouter
from backend.app.api.v1 import users, couples, anniversaries

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(couples.router, prefix="/couples", tags=["couples"])
api_router.include_router(anniversaries.router, prefix="/anniversaries", tags=["anniversaries"])
