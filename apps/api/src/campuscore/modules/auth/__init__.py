"""Authentication module."""

from campuscore.modules.auth.router import router
from campuscore.modules.auth.schemas import LoginRequest, LoginResponse, TokenResponse

__all__ = ["router", "LoginRequest", "LoginResponse", "TokenResponse"]
