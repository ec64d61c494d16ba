"""httpOnly auth cookie helpers shared by login and OTP registration."""

from fastapi import Response

from config.settings import settings
from src.wb_gateway.auth.jwt_handler import access_token_max_age


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=access_token_max_age(),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
