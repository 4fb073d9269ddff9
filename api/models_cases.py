# -*- coding: utf-8 -*-
"""
api/models_cases.py
修繕案件與設定文件的資料庫模型
案件內容整份存為 JSON，常用的篩選欄位另外展開成欄位
"""

from sqlalchemy import Column, Integer, Float, String, DateTime, JSON, Index, UniqueConstraint, func

from api.database import Base


class RepairCaseRecord(Base):
    __tablename__ = "repair_cases"

    id = Column(String(36), primary_key=True)

    # 應用程式識別（同一資料庫可區隔多個部署）
    app_id = Column(String, nullable=False)

    # 篩選用欄位（由 payload 展開）
    station     = Column(String, default='')
    status      = Column(String, default='')
    report_date = Column(String, default='')
    total_amount = Column(Float, default=0)
    created_by  = Column(String)
    version     = Column(Integer, nullable=False, default=1)
    updated_at  = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    payload = Column(JSON, nullable=False)

    __table_args__ = (
        Index('ix_repair_cases_app_status', 'app_id', 'status'),
        Index('ix_repair_cases_app_station', 'app_id', 'station'),
    )

    def __repr__(self):
        return f"<RepairCaseRecord(id='{self.id}', station='{self.station}', status='{self.status}')>"

    def to_dict(self):
        """還原為案件文件（補上中繼資料）"""
        data = dict(self.payload or {})
        data['id'] = self.id
        data['createdBy'] = self.created_by
        data['totalAmount'] = data.get('totalAmount', self.total_amount)
        data['updatedAt'] = self.updated_at.isoformat() if self.updated_at else None
        return data


class ConfigDocument(Base):
    __tablename__ = "config_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    app_id = Column(String, nullable=False)
    doc_key = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('app_id', 'doc_key', name='ux_config_documents_app_key'),
    )

    def __repr__(self):
        return f"<ConfigDocument(app_id='{self.app_id}', doc_key='{self.doc_key}')>"
