from fastapi import Depends, HTTPException
from opentelemetry.trace import Status, StatusCode
from sqlalchemy.orm import Session

from catalog.config.database import get_db
from catalog.core.exceptions import CatalogError, NotFoundError, StorageError, ValidationError
from catalog.services.book_manager import BookManager
from catalog.services.category_manager import CategoryManager


def get_category_manager(db: Session = Depends(get_db)):
    return CategoryManager(db)


def get_book_manager(db: Session = Depends(get_db)):
    return BookManager(db)


def to_http_exception(error: CatalogError) -> HTTPException:
    """서비스 예외 -> HTTP 상태 코드"""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    return HTTPException(status_code=500, detail="A storage error occurred while processing the request")


def record_span_failure(span, error: CatalogError):
    # 서비스 로그는 unit_of_work 에서 남기므로 여기서는 span 만 기록
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, description=str(error)))
    if isinstance(error, StorageError):
        span.set_attribute("http.status_code", 500)
