#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
案件清單即時更新
以背景執行緒輪詢資料庫變動指紋，有變動時重新查詢並通知訂閱者
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class WatcherState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    ERROR = "error"
    STOPPED = "stopped"


class CaseListWatcher:
    """
    案件清單監看器

    錯誤狀態與「查無資料」分開表示：查詢或通知失敗時 state 為 ERROR、
    last_error 保留例外，並呼叫 on_error，不會送出空清單，背景輪詢也不會中斷。
    """

    def __init__(
        self,
        fetch_cases: Callable[[], List[Any]],
        fingerprint: Callable[[], Any],
        on_change: Callable[[List[Any]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        interval: float = 5.0,
    ):
        """
        Args:
            fetch_cases: 重新查詢案件清單
            fingerprint: 取得目前的變動指紋
            on_change: 清單變動時的回呼
            on_error: 查詢或通知失敗時的回呼
            interval: 輪詢間隔（秒）
        """
        self._fetch_cases = fetch_cases
        self._fingerprint = fingerprint
        self._on_change = on_change
        self._on_error = on_error
        self.interval = interval

        self.state = WatcherState.IDLE
        self.last_error: Optional[Exception] = None
        self._last_fingerprint: Any = None
        self._has_snapshot = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> bool:
        """
        檢查一次，指紋變動（或第一次檢查）時重新查詢並通知

        Returns:
            bool: 是否有送出新的清單
        """
        try:
            current = self._fingerprint()
            if self._has_snapshot and current == self._last_fingerprint:
                return False
            cases = self._fetch_cases()
        except Exception as e:
            self._report_error(e, "案件清單更新失敗")
            return False

        try:
            self._on_change(cases)
        except Exception as e:
            # 未記錄指紋，下次輪詢會重新送出
            self._report_error(e, "案件清單通知失敗")
            return False

        self._last_fingerprint = current
        self._has_snapshot = True
        self.last_error = None
        if self.state == WatcherState.ERROR:
            self.state = WatcherState.RUNNING if self.is_running() else WatcherState.IDLE
        return True

    def _report_error(self, error: Exception, label: str) -> None:
        self.state = WatcherState.ERROR
        self.last_error = error
        logger.error(f"❌ {label}: {error}")
        if self._on_error:
            try:
                self._on_error(error)
            except Exception as callback_error:
                logger.error(f"❌ 錯誤回呼執行失敗: {callback_error}")

    def start(self) -> None:
        """啟動背景輪詢"""
        if self.is_running():
            return
        self._stop_event.clear()
        self.state = WatcherState.RUNNING
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()
        logger.info(f"👀 案件清單監看已啟動（每 {self.interval} 秒）")

    def stop(self, timeout: Optional[float] = None) -> None:
        """停止輪詢（取消訂閱）"""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.state = WatcherState.STOPPED

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _worker(self) -> None:
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)
