import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.core.exceptions import CatalogError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(session: Session, operation: str, commit: bool = True, **context):
    """
    서비스 작업 하나를 하나의 트랜잭션으로 묶는다.

    블록 안의 조회(존재 확인, 순환 검사 등)와 변경이 같은 트랜잭션에서 실행되고,
    성공하면 commit, 실패하면 rollback 후 예외를 전파한다.
    SQLAlchemyError 는 StorageError 로 감싸며 재시도하지 않는다.
    """
    try:
        yield
        if commit:
            session.commit()
    except CatalogError as ce:
        session.rollback()
        logger.warning(f"{operation} rejected.", extra={"operation": operation, **context, **ce.context, "error": str(ce)})
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{operation} failed in storage layer.", extra={"operation": operation, **context, "error": str(e)}, exc_info=True)
        raise StorageError(f"Storage failure during {operation}", {"operation": operation, **context}) from e
