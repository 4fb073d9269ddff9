#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件資料管理器
案件與設定文件（門牌主檔、價目表）的資料庫存取
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select

from api.database import Database
from api.models_cases import ConfigDocument, RepairCaseRecord
from config.settings import AppConfig
from controllers.errors import CaseNotFoundError, StationFilterLimitError
from models.case_model import RepairCase, generate_id

logger = logging.getLogger(__name__)

# 由資料表欄位維護、不重複存進 payload 的鍵
META_KEYS = ('id', 'createdBy', 'updatedAt')


def _to_payload(case: RepairCase) -> Dict[str, Any]:
    data = case.to_dict()
    for key in META_KEYS:
        data.pop(key, None)
    return data


def _apply_to_record(record: RepairCaseRecord, case: RepairCase) -> None:
    record.station = case.station
    record.status = case.status.value
    record.report_date = case.jdm_control.report_date
    record.total_amount = case.total_amount or 0
    record.created_by = case.created_by
    record.payload = _to_payload(case)


class CaseDataManager:
    """案件資料管理器"""

    def __init__(self, database: Database, app_id: str):
        """
        初始化資料管理器

        Args:
            database: 資料庫連線
            app_id: 應用程式識別，所有資料以此區隔
        """
        self.database = database
        self.app_id = app_id

    # ==================== 案件 ====================

    def save_case(self, case: RepairCase) -> RepairCase:
        """
        儲存案件：沒有 id 時新增，有 id 時覆寫（後寫入者為準）

        Args:
            case: 已通過檢核、已蓋上 totalAmount 與 createdBy 的案件

        Returns:
            RepairCase: 帶有 id 與伺服器時間 updatedAt 的案件

        Raises:
            CaseNotFoundError: 要更新的案件已不存在
        """
        with self.database.get_db() as db:
            if case.id:
                record = self._get_record(db, case.id)
                if record is None:
                    raise CaseNotFoundError(f"找不到案件: {case.id}")
                record.version = (record.version or 0) + 1
                action = "更新"
            else:
                # id 於提交成功後才寫回案件
                record = RepairCaseRecord(id=generate_id(), app_id=self.app_id, version=1)
                db.add(record)
                action = "新增"

            _apply_to_record(record, case)
            self._bump_change_counter(db)
            db.commit()
            db.refresh(record)
            case.id = record.id
            case.updated_at = record.updated_at

        logger.info(f"💾 已{action}案件 {case.id}")
        return case

    def get_case(self, case_id: str) -> RepairCase:
        """取得單一案件"""
        with self.database.get_db() as db:
            record = self._get_record(db, case_id)
            if record is None:
                raise CaseNotFoundError(f"找不到案件: {case_id}")
            return RepairCase.from_dict(record.to_dict())

    def delete_case(self, case_id: str) -> None:
        """刪除案件（無法復原）"""
        with self.database.get_db() as db:
            record = self._get_record(db, case_id)
            if record is None:
                raise CaseNotFoundError(f"找不到案件: {case_id}")
            db.delete(record)
            self._bump_change_counter(db)
            db.commit()
        logger.info(f"🗑️ 已刪除案件 {case_id}")

    def query_cases(self, status_filter: str = AppConfig.DASHBOARD_STATUS_ALL,
                    stations: Optional[List[str]] = None) -> List[RepairCase]:
        """
        伺服器端篩選

        Args:
            status_filter: 全部、待提報、未完成案件 (全部) 或單一狀態
            stations: 站別清單，最多 10 個

        Returns:
            List[RepairCase]

        Raises:
            StationFilterLimitError: 站別超過上限（不會送出查詢）
        """
        stations = [s for s in (stations or []) if s]
        if len(stations) > AppConfig.STATION_FILTER_LIMIT:
            raise StationFilterLimitError(
                f"站別篩選最多 {AppConfig.STATION_FILTER_LIMIT} 個，目前選擇 {len(stations)} 個"
            )

        stmt = select(RepairCaseRecord).where(RepairCaseRecord.app_id == self.app_id)

        status_filter = (status_filter or AppConfig.DASHBOARD_STATUS_ALL).strip()
        if status_filter == AppConfig.UNSET_STATUS_LABEL:
            stmt = stmt.where(RepairCaseRecord.status == '')
        elif status_filter == AppConfig.DASHBOARD_STATUS_OPEN:
            stmt = stmt.where(RepairCaseRecord.status.in_(AppConfig.OPEN_STATUSES))
        elif status_filter != AppConfig.DASHBOARD_STATUS_ALL:
            stmt = stmt.where(RepairCaseRecord.status == status_filter)

        if stations:
            stmt = stmt.where(RepairCaseRecord.station.in_(stations))

        stmt = stmt.order_by(RepairCaseRecord.updated_at.desc())

        with self.database.get_db() as db:
            records = db.execute(stmt).scalars().all()
            return [RepairCase.from_dict(record.to_dict()) for record in records]

    def bulk_insert(self, cases: List[RepairCase], batch_size: int = AppConfig.IMPORT_BATCH_SIZE) -> int:
        """
        批次新增匯入的案件，每批各自提交

        中途失敗時，已提交的批次會保留。

        Returns:
            int: 新增筆數
        """
        inserted = 0
        for start in range(0, len(cases), batch_size):
            batch = cases[start:start + batch_size]
            ids = [case.id or generate_id() for case in batch]
            with self.database.get_db() as db:
                for case, case_id in zip(batch, ids):
                    record = RepairCaseRecord(id=case_id, app_id=self.app_id, version=1)
                    _apply_to_record(record, case)
                    db.add(record)
                self._bump_change_counter(db)
                db.commit()
            for case, case_id in zip(batch, ids):
                case.id = case_id
            inserted += len(batch)
            logger.info(f"📥 已寫入 {inserted}/{len(cases)} 筆案件")
        return inserted

    def fingerprint(self) -> Tuple[int, int, Optional[datetime], int]:
        """
        案件清單的變動指紋：(筆數, 版本總和, 最後更新時間, 異動次數)

        updated_at 在 SQLite 只到秒，同一秒內刪除再新增時前三項可能不變，
        異動次數由每次新增、更新、刪除遞增。
        """
        stmt = select(
            func.count(RepairCaseRecord.id),
            func.coalesce(func.sum(RepairCaseRecord.version), 0),
            func.max(RepairCaseRecord.updated_at),
        ).where(RepairCaseRecord.app_id == self.app_id)
        with self.database.get_db() as db:
            count, versions, latest = db.execute(stmt).one()
            counter = self._get_document(db, AppConfig.CONFIG_DOCS['case_changes'])
            changes = int(counter.payload.get('value', 0)) if counter else 0
        return int(count), int(versions), latest, changes

    def _bump_change_counter(self, db) -> None:
        """與案件異動同一交易遞增異動次數"""
        key = AppConfig.CONFIG_DOCS['case_changes']
        counter = self._get_document(db, key)
        current = int(counter.payload.get('value', 0)) if counter else 0
        self._put_document(db, key, {'value': current + 1})

    def _get_record(self, db, case_id: str) -> Optional[RepairCaseRecord]:
        stmt = select(RepairCaseRecord).where(
            RepairCaseRecord.app_id == self.app_id,
            RepairCaseRecord.id == case_id,
        )
        return db.execute(stmt).scalar_one_or_none()

    # ==================== 設定文件 ====================

    def _get_document(self, db, doc_key: str) -> Optional[ConfigDocument]:
        stmt = select(ConfigDocument).where(
            ConfigDocument.app_id == self.app_id,
            ConfigDocument.doc_key == doc_key,
        )
        return db.execute(stmt).scalar_one_or_none()

    def _put_document(self, db, doc_key: str, payload: Dict[str, Any]) -> None:
        document = self._get_document(db, doc_key)
        if document is None:
            db.add(ConfigDocument(app_id=self.app_id, doc_key=doc_key, payload=payload))
        else:
            document.payload = payload

    def save_address_master(self, records: List[Dict[str, Any]], sheets: List[str]) -> int:
        """
        儲存門牌主檔：每 500 筆一個分段文件，另存一份索引文件

        Returns:
            int: 分段數量
        """
        size = AppConfig.CHUNK_SIZE
        chunks = [records[i:i + size] for i in range(0, len(records), size)]
        chunk_key = AppConfig.CONFIG_DOCS['address_chunk']

        with self.database.get_db() as db:
            self._put_document(db, AppConfig.CONFIG_DOCS['address_master'], {
                'chunkCount': len(chunks),
                'sheets': list(sheets),
                'updatedAt': datetime.now().isoformat(),
            })
            for index, chunk in enumerate(chunks):
                self._put_document(db, chunk_key.format(index=index), {'list': chunk})

            # 移除上一版多出來的分段
            stale_prefix = chunk_key.format(index='')
            stale = db.execute(select(ConfigDocument).where(
                ConfigDocument.app_id == self.app_id,
                ConfigDocument.doc_key.startswith(stale_prefix, autoescape=True),
            )).scalars().all()
            for document in stale:
                index = document.doc_key[len(stale_prefix):]
                if index.isdigit() and int(index) >= len(chunks):
                    db.delete(document)
            db.commit()

        logger.info(f"💾 門牌主檔已儲存：{len(records)} 筆，{len(chunks)} 個分段")
        return len(chunks)

    def load_address_master(self) -> Tuple[List[Dict[str, Any]], List[str]]:
        """依索引文件讀回所有分段，回傳 (門牌紀錄, 工作表名稱)"""
        with self.database.get_db() as db:
            manifest = self._get_document(db, AppConfig.CONFIG_DOCS['address_master'])
            if manifest is None:
                return [], []

            records = []
            chunk_key = AppConfig.CONFIG_DOCS['address_chunk']
            for index in range(int(manifest.payload.get('chunkCount', 0))):
                chunk = self._get_document(db, chunk_key.format(index=index))
                if chunk is not None:
                    records.extend(chunk.payload.get('list', []))
            return records, list(manifest.payload.get('sheets', []))

    def save_price_master(self, items: List[Dict[str, Any]]) -> None:
        with self.database.get_db() as db:
            self._put_document(db, AppConfig.CONFIG_DOCS['price_master'], {
                'list': items,
                'updatedAt': datetime.now().isoformat(),
            })
            db.commit()
        logger.info(f"💾 價目表已儲存：{len(items)} 項")

    def load_price_master(self) -> List[Dict[str, Any]]:
        with self.database.get_db() as db:
            document = self._get_document(db, AppConfig.CONFIG_DOCS['price_master'])
            return list(document.payload.get('list', [])) if document else []
