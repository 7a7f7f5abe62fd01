"""
FastAPI dependencies shared by the routers.

Authentication is done upstream: the gateway verifies the session and
forwards the user id in a trusted header (settings.user_id_header). The
backend only requires that the header is present.
"""

from fastapi import Request

from harvous.config import settings
from harvous.exceptions import AuthenticationError


async def get_current_user_id(request: Request) -> str:
    """
    Raises:
        AuthenticationError: header missing or blank (→ 401)
    """
    user_id = request.headers.get(settings.user_id_header, "").strip()
    if not user_id:
        raise AuthenticationError(
            context={"header": settings.user_id_header},
        )
    return user_id
