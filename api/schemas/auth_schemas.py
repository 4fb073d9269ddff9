# schemas/auth_schemas.py

from typing import Any, Dict

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str = ''
    password: str = ''


class LoginResponse(BaseModel):
    success: bool
    message: str
    user_data: Dict[str, Any] = {}
