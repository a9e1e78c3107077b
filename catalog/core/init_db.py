import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.config.database import Base, engine
from catalog.core.exceptions import CatalogError
from catalog.models.category import Category
from catalog.services.category_manager import validate_category_name
from catalog.services.transaction import unit_of_work

logger = logging.getLogger(__name__)

# (이름, 하위 카테고리) 형태의 샘플 트리
SAMPLE_CATEGORIES = [
    ("Fiction", [
        ("Sci-Fi", [
            ("Cyberpunk", []),
        ]),
        ("Fantasy", []),
    ]),
    ("Non-Fiction", [
        ("History", []),
    ]),
]


def create_tables(bind=None):
    """테이블이 존재하지 않는 경우에만 생성"""
    # 모든 모델이 metadata 에 등록되도록 import
    import catalog.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
    logger.info("Database tables verified.")


def initialize_categories(db: Session) -> bool:
    """샘플 카테고리 트리 생성. 이미 데이터가 있으면 건너뜀 (전체가 하나의 트랜잭션)"""
    existing = db.execute(select(Category.category_id).limit(1)).first()
    if existing:
        logger.info("Categories already initialized, skipping")
        return False

    try:
        with unit_of_work(db, "initialize_categories"):
            created = 0
            pending = [(None, name, children) for name, children in SAMPLE_CATEGORIES]
            while pending:
                parent_id, name, children = pending.pop(0)
                category = Category(name=validate_category_name(name), parent_id=parent_id)
                db.add(category)
                db.flush()  # 하위 카테고리가 참조할 ID 생성
                created += 1
                pending.extend((category.category_id, child_name, grandchildren) for child_name, grandchildren in children)
    except CatalogError as e:
        logger.error("Error initializing categories.", extra={"error": str(e)}, exc_info=True)
        raise

    logger.info("Categories initialized successfully", extra={"category_count": created})
    return True
