#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
初始化資料庫表格
"""

from api.database import Database
from config.settings import BackendConfig

if __name__ == "__main__":
    config = BackendConfig.from_env()
    print("🚀 開始建立資料表...")
    Database.from_url(config.database_url).create_all()
    print("✅ 資料表建立完成")
