# api/routes/auth_routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_login_controller
from api.schemas.auth_schemas import LoginRequest, LoginResponse
from controllers.login_controller import LoginController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, controller: LoginController = Depends(get_login_controller)):
    """Email/密碼登入；失敗時 detail 為對使用者顯示的訊息"""
    result = controller.login(payload.email, payload.password)
    if not result["success"]:
        code = status.HTTP_400_BAD_REQUEST if not result["code"] else status.HTTP_401_UNAUTHORIZED
        raise HTTPException(status_code=code, detail=result["message"])
    return LoginResponse(success=True, message=result["message"], user_data=result["user_data"])
