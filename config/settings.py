#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
系統設定
AppConfig：業務常數（契約類型、案件狀態、滿意度、待補資料、匯出模式）
BackendConfig：由環境變數建立的後端連線設定（資料庫、身分驗證）
"""

import json
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from controllers.errors import ConfigurationError


class AppConfig:
    """應用程式設定"""

    # 契約類型
    REPAIR_TYPES = {
        '2.1': '契約內',
        '2.2': '契約外'
    }

    # 案件狀態（空字串代表待提報）
    CASE_STATUSES = ['提報', '結報', '抽換', '退件']
    UNSET_STATUS_LABEL = '待提報'

    # 尚未結報的狀態集合（伺服器端篩選使用）
    OPEN_STATUSES = ['', '提報', '抽換', '退件']

    # 滿意度分級（標籤, 分數）
    SATISFACTION_LEVELS = [
        ('非常滿意', 100),
        ('滿意', 75),
        ('普通', 50),
        ('尚須改進', 25),
        ('不滿意', 0),
        ('不需滿意度', None),
    ]

    # 舊資料滿意度欄位 → 標準分級
    LEGACY_SATISFACTION_COLUMNS = {
        '非常滿意': '非常滿意',
        '滿意': '滿意',
        '尚可': '普通',
        '需改進': '尚須改進',
        '不滿意': '不滿意',
    }

    # JDM 待補資料項目
    JDM_CHECKLIST_ITEMS = {
        'photoBefore': '維修前照片',
        'photoDuring': '維修中照片',
        'photoAfter': '維修後照片',
        'quotation': '報價單',
        'warranty': '保固書',
        'invoice': '發票',
        'bankCopy': '存摺影本',
        'satisfactionForm': '滿意度調查表',
    }

    # 狀態變更時自動移除的待補項目
    STATUS_CHECKLIST_REMOVALS = {
        '提報': ['photoBefore', 'quotation'],
    }

    # 需要確認才能套用的狀態變更
    STATUS_CONFIRM_MESSAGES = {
        '提報': '變更為提報後，系統將自動從待補清單移除「維修前照片」與「報價單」。',
        '結報': '變更為結報後，系統將自動清空所有待補資料項。',
    }

    # 費用計算
    SERVICE_FEE_RATE = 0.05
    TAX_RATE = 0.05

    # 新案件預設值
    FORM_DEFAULTS = {
        'repair_type': '2.1',
        'income_source': '晟晁',
        'site_description': '收到承租人報修，請我方派員查看。',
        'construction_desc1': '經廠商檢測，。',
        'completion_desc1': '廠商將OOO更新，測試功能正常，完成修繕。',
        'repair_unit': '式',
    }

    # 儲存/查詢限制
    CHUNK_SIZE = 500
    IMPORT_BATCH_SIZE = 100
    STATION_FILTER_LIMIT = 10
    ADDRESS_RESULT_LIMIT = 50

    # 設定文件鍵名
    CONFIG_DOCS = {
        'address_master': 'address_master',
        'address_chunk': 'address_master_chunk_{index}',
        'price_master': 'price_master',
        'case_changes': 'case_changes',
    }

    # 儀表板狀態篩選
    DASHBOARD_STATUS_ALL = '全部'
    DASHBOARD_STATUS_OPEN = '未完成案件 (全部)'

    # 特殊公式
    SPECIAL_FORMULAS = ['本期已完工', '前期已完工', '本期待追蹤', '前期待追蹤', '約內已完工', '內控管理']

    # 匯出模式與欄位
    EXPORT_MODES = {
        '待追蹤事項': ['項次', '案號', '站別', '地址', '報修日期', '故障問題描述'],
        '工作提報單': ['案號', '站別', '地址', '故障描述', '報修日', '完工日'],
        '滿意度調查': ['JDM系統案號', '捷運站點', '門牌', '施工說明', '滿意度分級', '滿意度分數', '類別'],
        '內控管理': ['案號', '地址', '費用合計', '維修廠商', '費用發票', '收入合計', '請款廠商', '收入發票'],
    }
    INTERNAL_CONTROL_SUMMARY_COLUMNS = ['統計項目', '契約內', '契約外', '合計']

    # 登入錯誤訊息
    AUTH_ERROR_MESSAGES = {
        'auth/unauthorized-domain': '偵測到未經授權的來源網域，請將此網址加入身分驗證服務的授權網域白名單。',
        'auth/operation-not-allowed': '身分驗證服務尚未開啟 Email 登入功能，請在設定中啟用 Email/Password 登入方法。',
        'auth/user-not-found': '帳號不存在，請確認 Email 是否正確。',
        'auth/wrong-password': '密碼錯誤，請重新輸入。',
        'auth/invalid-credential': '憑證無效，請檢查帳號密碼。',
        'auth/too-many-requests': '嘗試次數過多，系統已暫時鎖定該帳號。請稍後再試。',
        'auth/network-request-failed': '網路連線異常，請檢查連線狀態。',
        'auth/unknown': '發生未知的驗證錯誤，請檢查系統配置。',
    }

    @staticmethod
    def get_repair_type_label(repair_type):
        """取得契約類型顯示名稱"""
        return AppConfig.REPAIR_TYPES.get(repair_type, '契約外')

    @staticmethod
    def get_satisfaction_score(level):
        """根據滿意度分級取得固定分數"""
        for label, score in AppConfig.SATISFACTION_LEVELS:
            if label == level:
                return score
        return None

    @staticmethod
    def get_checklist_label(item_id):
        return AppConfig.JDM_CHECKLIST_ITEMS.get(item_id, item_id)


DEFAULT_APP_ID = 'mrt-jdm-repair-default'
DEFAULT_AUTH_ENDPOINT = 'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'


def _normalize_database_url(url: str) -> str:
    """將 heroku 風格的 DSN 轉為 SQLAlchemy 可用格式"""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def _api_key_from_json(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    try:
        return json.loads(raw).get('apiKey')
    except (ValueError, AttributeError) as e:
        raise ConfigurationError(f"FIREBASE_CONFIG 解析失敗: {e}")


@dataclass
class BackendConfig:
    """後端連線設定（明確建立後傳入需要的元件）"""

    database_url: str
    auth_api_key: str
    app_id: str = DEFAULT_APP_ID
    auth_endpoint: str = DEFAULT_AUTH_ENDPOINT
    watch_interval: float = 5.0

    @classmethod
    def from_env(cls, env=None) -> "BackendConfig":
        """
        從環境變數建立設定

        Args:
            env: 環境變數字典，None 則讀取 os.environ（並載入 .env）

        Returns:
            BackendConfig

        Raises:
            ConfigurationError: 缺少資料庫或身分驗證設定
        """
        if env is None:
            load_dotenv()
            env = os.environ

        database_url = _normalize_database_url(env.get("DATABASE_URL", "").strip())
        if not database_url:
            raise ConfigurationError("DATABASE_URL not set")

        api_key = env.get("AUTH_API_KEY") or _api_key_from_json(env.get("FIREBASE_CONFIG"))
        if not api_key:
            raise ConfigurationError("AUTH_API_KEY / FIREBASE_CONFIG.apiKey not set")

        try:
            watch_interval = float(env.get("WATCH_INTERVAL", "5"))
        except ValueError:
            raise ConfigurationError(f"WATCH_INTERVAL 格式不正確: {env.get('WATCH_INTERVAL')}")

        return cls(
            database_url=database_url,
            auth_api_key=api_key,
            app_id=env.get("APP_ID") or DEFAULT_APP_ID,
            auth_endpoint=env.get("AUTH_ENDPOINT") or DEFAULT_AUTH_ENDPOINT,
            watch_interval=watch_interval,
        )
