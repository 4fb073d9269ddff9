from fastapi import Header, HTTPException, Request, status

from controllers.case_controller import CaseController
from controllers.login_controller import LoginController


def get_user_id(x_user_id: str = Header(None, alias="X-User-ID")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-User-ID header is required")
    return x_user_id.strip()


def get_case_controller(request: Request) -> CaseController:
    return request.app.state.case_controller


def get_login_controller(request: Request) -> LoginController:
    return request.app.state.login_controller
