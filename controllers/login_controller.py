#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
controllers/login_controller.py
修繕案件管理系統 - 登入控制層
以 Email/密碼向身分驗證服務（REST API）登入，並將錯誤代碼轉為使用者訊息
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from config.settings import AppConfig, BackendConfig
from controllers.errors import AuthError

logger = logging.getLogger(__name__)

# 身分驗證服務的錯誤字串 → 標準錯誤代碼
PROVIDER_ERROR_CODES = {
    'EMAIL_NOT_FOUND': 'auth/user-not-found',
    'INVALID_PASSWORD': 'auth/wrong-password',
    'INVALID_LOGIN_CREDENTIALS': 'auth/invalid-credential',
    'INVALID_EMAIL': 'auth/invalid-credential',
    'USER_DISABLED': 'auth/invalid-credential',
    'OPERATION_NOT_ALLOWED': 'auth/operation-not-allowed',
    'PASSWORD_LOGIN_DISABLED': 'auth/operation-not-allowed',
    'TOO_MANY_ATTEMPTS_TRY_LATER': 'auth/too-many-requests',
}
UNKNOWN_ERROR_CODE = 'auth/unknown'
EMPTY_CREDENTIALS_MESSAGE = '請輸入帳號與密碼'


def message_for_code(code: str) -> str:
    """錯誤代碼 → 使用者訊息，未知代碼一律視為未知錯誤"""
    messages = AppConfig.AUTH_ERROR_MESSAGES
    return messages.get(code, messages[UNKNOWN_ERROR_CODE])


def map_provider_error(status_code: int, payload: Any) -> str:
    """
    解析身分驗證服務的錯誤回應

    Args:
        status_code: HTTP 狀態碼
        payload: 回應 JSON（{"error": {"message": ..., "status": ...}}）

    Returns:
        str: 標準錯誤代碼
    """
    error = payload.get('error', {}) if isinstance(payload, dict) else {}
    raw_message = str(error.get('message') or '')
    # 例如 "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been temporarily disabled"
    reason = raw_message.split(':', 1)[0].strip()

    if reason in PROVIDER_ERROR_CODES:
        return PROVIDER_ERROR_CODES[reason]
    if 'referer' in raw_message.lower() or error.get('status') == 'PERMISSION_DENIED' or status_code == 403:
        return 'auth/unauthorized-domain'
    return UNKNOWN_ERROR_CODE


@dataclass
class AuthUser:
    uid: str
    email: str
    id_token: str = ''


class IdentityProvider:
    """身分驗證服務用戶端"""

    def __init__(self, api_key: str, endpoint: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    @classmethod
    def from_config(cls, config: BackendConfig) -> "IdentityProvider":
        return cls(api_key=config.auth_api_key, endpoint=config.auth_endpoint)

    def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Email/密碼登入

        Raises:
            AuthError: 登入失敗（含網路錯誤）
        """
        try:
            response = self.session.post(
                self.endpoint,
                params={'key': self.api_key},
                json={'email': email, 'password': password, 'returnSecureToken': True},
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"⚠️ 無法連線身分驗證服務: {e}")
            code = 'auth/network-request-failed'
            raise AuthError(code, message_for_code(code)) from e
        except requests.RequestException as e:
            logger.error(f"❌ 身分驗證請求失敗: {e}")
            raise AuthError(UNKNOWN_ERROR_CODE, message_for_code(UNKNOWN_ERROR_CODE)) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code != 200:
            code = map_provider_error(response.status_code, payload)
            raise AuthError(code, message_for_code(code))

        return AuthUser(
            uid=str(payload.get('localId', '')),
            email=str(payload.get('email', email)),
            id_token=str(payload.get('idToken', '')),
        )


class LoginController:
    """登入控制層"""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        登入

        Args:
            email: 帳號
            password: 密碼

        Returns:
            認證結果字典，包含 success, message, code, user_data
        """
        email = (email or '').strip()
        if not email or not password:
            return {'success': False, 'message': EMPTY_CREDENTIALS_MESSAGE, 'code': '', 'user_data': {}}

        try:
            user = self.provider.sign_in(email, password)
        except AuthError as e:
            logger.warning(f"登入失敗: {email} - {e.code}")
            return {'success': False, 'message': e.message, 'code': e.code, 'user_data': {}}

        logger.info(f"✅ 登入成功: {email}")
        return {
            'success': True,
            'message': '登入成功',
            'code': '',
            'user_data': {'uid': user.uid, 'email': user.email, 'token': user.id_token},
        }
