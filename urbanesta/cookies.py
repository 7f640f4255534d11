from fastapi import Response

from .config import settings

ACCESS_COOKIE = "urbanesta_token"
TOKEN_COOKIE = "token"
REFRESH_COOKIE = "urbanesta_refresh_token"
USER_ID_COOKIE = "urbanesta_user_id"


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
        "domain": settings.COOKIE_DOMAIN if settings.is_production else None,
    }


def set_access_cookies(response: Response, access_token: str) -> None:
    max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=max_age, **options)
    response.set_cookie(TOKEN_COOKIE, access_token, max_age=max_age, **options)


def set_auth_cookies(response: Response, access_token: str, refresh_token: str, user_id: str) -> None:
    refresh_max_age = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
    options = _cookie_options()
    set_access_cookies(response, access_token)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=refresh_max_age, **options)
    response.set_cookie(USER_ID_COOKIE, user_id, max_age=refresh_max_age, **options)


def clear_auth_cookies(response: Response) -> None:
    options = _cookie_options()
    for name in (ACCESS_COOKIE, TOKEN_COOKIE, REFRESH_COOKIE, USER_ID_COOKIE):
        response.delete_cookie(name, **options)
