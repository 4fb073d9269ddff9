#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
捷運站修繕案件管理系統 - 主程式入口
"""

import logging
import os

import uvicorn

from api.main import create_app


def setup_logging():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def main():
    setup_logging()
    app = create_app()
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    main()
