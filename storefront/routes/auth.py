"""Session routes backed by the marketplace API"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core.container import Services
from .deps import get_services

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
async def login(
    request: LoginRequest,
    services: Services = Depends(get_services),
):
    """Sign in against the marketplace backend"""
    user = await services.api.login(request.email, request.password)
    return {"authenticated": True, "user": user}


@router.post("/register")
async def register(
    user_data: dict,
    services: Services = Depends(get_services),
):
    """Create an account and sign in"""
    user = await services.api.register(user_data)
    return {"authenticated": True, "user": user}


@router.post("/logout")
async def logout(services: Services = Depends(get_services)):
    await services.api.logout()
    return {"authenticated": False}


@router.get("/me")
async def me(services: Services = Depends(get_services)):
    """Current user as known by the backend"""
    user = await services.api.me()
    return {"authenticated": True, "user": user}
