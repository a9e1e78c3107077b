import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog.api.dependencies import get_book_manager, record_span_failure, to_http_exception
from catalog.core.config import settings
from catalog.core.exceptions import CatalogError
from catalog.schemas.book import (
    BatchDeleteRequest,
    BatchDeleteResponse,
    BookCreate,
    BookListResponse,
    BookQuery,
    BookResponse,
    BookUpdate,
)
from catalog.services.book_manager import BookManager

router = APIRouter()
tracer = trace.get_tracer("catalog.api.book_router")

logger = logging.getLogger(__name__)


@router.get("/", response_model=BookListResponse, summary="List books with filters, sorting and pagination")
def read_books(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    title: Optional[str] = None,
    category: Optional[str] = None,
    keyword: Optional[str] = None,
    publisher: Optional[str] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
    sort_by: str = "book_id",
    sort_dir: str = "ASC",
    manager: BookManager = Depends(get_book_manager)
):
    """책 목록 조회"""
    filters = BookQuery(
        page=page,
        limit=limit,
        title=title,
        category=category,
        keyword=keyword,
        publisher=publisher,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    with tracer.start_as_current_span("endpoint.read_books") as span:
        span.set_attribute("app.book.request.page", page)
        span.set_attribute("app.book.request.limit", limit)
        try:
            books, pagination = manager.list_books(filters)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.book.response.total_items", pagination.total_items)
        span.set_status(Status(StatusCode.OK))
        return BookListResponse(
            items=[BookResponse.from_model(book) for book in books],
            pagination=pagination,
        )


@router.get("/{book_id}", response_model=BookResponse, summary="Get a specific book by ID")
def read_book(
    book_id: int,
    manager: BookManager = Depends(get_book_manager)
):
    """책 조회"""
    with tracer.start_as_current_span("endpoint.read_book") as span:
        span.set_attribute("app.book.request.id", book_id)
        try:
            book = manager.get_book(book_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)
        span.set_status(Status(StatusCode.OK))
        return BookResponse.from_model(book)


@router.post("/", response_model=BookResponse, status_code=status.HTTP_201_CREATED, summary="Create a new book")
def create_book(
    book: BookCreate,
    manager: BookManager = Depends(get_book_manager)
):
    """새 책 생성"""
    with tracer.start_as_current_span("endpoint.create_book") as span:
        span.set_attribute("app.book.request.title", book.title)
        if book.categories:
            span.set_attribute("app.book.request.categories_count", len(book.categories))

        logger.info("Attempting to create book.", extra={"book_title": book.title, "publisher": book.publisher})
        try:
            result = manager.create_book(book)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.book.response.id", result.book_id)
        span.set_status(Status(StatusCode.OK))
        return BookResponse.from_model(result)


@router.put("/{book_id}", response_model=BookResponse, summary="Update a book")
def update_book(
    book_id: int,
    book_update: BookUpdate,
    manager: BookManager = Depends(get_book_manager)
):
    """책 정보 수정"""
    with tracer.start_as_current_span("endpoint.update_book") as span:
        span.set_attribute("app.book.request.id", book_id)
        logger.info("Attempting to update book.", extra={"book_id": book_id})
        try:
            result = manager.update_book(book_id, book_update)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)
        span.set_status(Status(StatusCode.OK))
        return BookResponse.from_model(result)


@router.delete("/{book_id}", summary="Delete a book")
def delete_book(
    book_id: int,
    manager: BookManager = Depends(get_book_manager)
):
    """책 삭제"""
    with tracer.start_as_current_span("endpoint.delete_book") as span:
        span.set_attribute("app.book.request.id", book_id)
        logger.info("Attempting to delete book.", extra={"book_id": book_id})
        try:
            manager.delete_book(book_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)
        span.set_status(Status(StatusCode.OK))
        return {"success": True, "message": "Book deleted successfully", "book_id": book_id}


@router.post("/batch/delete", response_model=BatchDeleteResponse, summary="Delete several books at once")
def delete_books(
    request: BatchDeleteRequest,
    manager: BookManager = Depends(get_book_manager)
):
    """책 일괄 삭제"""
    with tracer.start_as_current_span("endpoint.delete_books") as span:
        span.set_attribute("app.book.request.ids_count", len(request.ids))
        logger.info("Attempting to delete books in batch.", extra={"requested_count": len(request.ids)})
        try:
            result = manager.delete_books(request.ids)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)
        span.set_attribute("app.book.response.deleted_count", result.deleted_count)
        span.set_status(Status(StatusCode.OK))
        return result
