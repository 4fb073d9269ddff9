#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

Base = declarative_base()


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create the engine for a normalized DSN (see BackendConfig.from_env)."""
    options = {"pool_pre_ping": True, "future": True}
    if not database_url.startswith("sqlite"):
        options["pool_recycle"] = 300
    options.update(kwargs)
    return create_engine(database_url, **options)


class Database:
    """Engine + session factory owned by the application instead of module globals."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "Database":
        return cls(build_engine(database_url, **kwargs))

    def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        from api import models_cases  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def get_db(self) -> Generator[Session, None, None]:
        """Yield a SQLAlchemy Session; the caller commits."""
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_database_info(self):
        try:
            masked = str(self.engine.url)
            if "@" in masked:
                userinfo, rest = masked.split("@", 1)
                user = userinfo.split(":")[0]
                masked = f"{user}:***@{rest}"
            return {"engine": self.engine.dialect.name, "url_masked": masked}
        except Exception:
            return {"engine": "unknown", "url_masked": "unknown"}
