from fastapi import APIRouter, Depends, Form

from ..models.auth import AuthToken
from ..services.auth_service import AuthService
from .dependencies import get_auth_service

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=AuthToken)
async def login(
    username: str = Form(""),
    password: str = Form(""),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.login(username, password)
