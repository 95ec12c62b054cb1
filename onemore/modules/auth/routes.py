from fastapi import APIRouter, Depends
from onemore.modules.auth.schemas import AnonymousSignInResponse, CurrentUserResponse
from onemore.modules.auth.service import AuthService
from onemore.core.dependencies import get_auth_service, get_current_user
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/anonymous", response_model=AnonymousSignInResponse, status_code=201)
async def sign_in_anonymously(
    service: AuthService = Depends(get_auth_service)
):
    """Issue an anonymous identity; clients keep the token for later requests"""
    return await service.sign_in_anonymously()


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user)
):
    """Get current authenticated user"""
    return current_user
