import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from catalog.core.config import settings

logger = logging.getLogger(__name__)

#################################################
## . Database
#################################################

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def build_engine(url: str, **kwargs) -> Engine:
    """URL 종류에 맞는 옵션으로 엔진 생성"""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 3600)
    return create_engine(url, echo=settings.SQL_ECHO, **kwargs)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite 는 연결마다 외래키 제약을 켜야 ON DELETE CASCADE 가 동작함
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(SQLALCHEMY_DATABASE_URL)
logger.info("Database engine configured.", extra={"dialect": engine.dialect.name})

# 세션 팩토리 생성
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False
)

Base = declarative_base()


def get_db():
    """요청 단위 DB 세션 (FastAPI dependency)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
