import logging
import math
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from opentelemetry import trace
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.models.book import Book, BookKeyword, Keyword
from catalog.models.category import BookCategory, Category
from catalog.schemas.book import BatchDeleteResponse, BookCreate, BookQuery, BookUpdate, Pagination
from catalog.services.category_manager import validate_category_name
from catalog.services.transaction import unit_of_work
from catalog.utils.price import parse_price

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# 정렬 허용 필드 (원본 API 의 camelCase 이름도 허용)
SORT_FIELDS = {
    "book_id": Book.book_id,
    "id": Book.book_id,
    "title": Book.title,
    "price": Book.price,
    "stock": Book.stock,
    "publisher": Book.publisher,
    "created_at": Book.created_at,
    "createdAt": Book.created_at,
    "updated_at": Book.updated_at,
    "updatedAt": Book.updated_at,
}
SORT_DIRECTIONS = ("ASC", "DESC")

REQUIRED_FIELDS_MESSAGE = "All required fields must be provided (title, description, price, stock, publisher)"


def _is_id_reference(item) -> bool:
    # 숫자 또는 숫자 문자열은 ID, 그 외 문자열은 이름으로 취급
    if isinstance(item, bool):
        return False
    return isinstance(item, int) or (isinstance(item, str) and item.strip().isdigit())


class BookManager:
    def __init__(self, db_session: Session):
        self.session = db_session

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _require(self, book_id: int) -> Book:
        book = self.session.get(Book, book_id)
        if book is None:
            raise NotFoundError(f"Book with ID {book_id} not found", {"book_id": book_id})
        return book

    @staticmethod
    def _required_text(value: Optional[str], field: str) -> str:
        if value is None or not str(value).strip():
            raise ValidationError(REQUIRED_FIELDS_MESSAGE, {"field": field})
        return str(value).strip()

    @staticmethod
    def _price(value) -> Decimal:
        price = parse_price(value)
        if price < 0:
            raise ValidationError("Price must be greater than or equal to 0", {"price": str(price)})
        return price

    def _resolve_categories(self, items: Iterable) -> List[Category]:
        """ID 는 존재 확인, 이름은 조회 후 없으면 최상위 카테고리로 생성"""
        resolved = []
        seen = set()
        for item in items:
            if _is_id_reference(item):
                category_id = int(item)
                category = self.session.get(Category, category_id)
                if category is None:
                    raise NotFoundError(f"Category with ID {category_id} not found", {"category_id": category_id})
            else:
                category_name = validate_category_name(item)
                category = self.session.execute(
                    select(Category).where(Category.name == category_name).order_by(Category.category_id).limit(1)
                ).scalar_one_or_none()
                if category is None:
                    category = Category(name=category_name)
                    self.session.add(category)
                    self.session.flush()
                    logger.info("Category created from book payload.", extra={"category_id": category.category_id, "category_name": category_name})
            if category.category_id not in seen:
                seen.add(category.category_id)
                resolved.append(category)
        return resolved

    def _resolve_keywords(self, items: Iterable) -> List[Keyword]:
        resolved = []
        seen = set()
        for item in items:
            if _is_id_reference(item):
                keyword_id = int(item)
                keyword = self.session.get(Keyword, keyword_id)
                if keyword is None:
                    raise NotFoundError(f"Keyword with ID {keyword_id} not found", {"keyword_id": keyword_id})
            else:
                if not isinstance(item, str) or not item.strip():
                    raise ValidationError("Keyword name is required", {"keyword_name": item})
                keyword_name = item.strip()
                keyword = self.session.execute(
                    select(Keyword).where(Keyword.name == keyword_name)
                ).scalar_one_or_none()
                if keyword is None:
                    keyword = Keyword(name=keyword_name)
                    self.session.add(keyword)
                    self.session.flush()
            if keyword.keyword_id not in seen:
                seen.add(keyword.keyword_id)
                resolved.append(keyword)
        return resolved

    def _delete_ids(self, book_ids: List[int]) -> int:
        self.session.execute(delete(BookCategory).where(BookCategory.book_id.in_(book_ids)))
        self.session.execute(delete(BookKeyword).where(BookKeyword.book_id.in_(book_ids)))
        result = self.session.execute(delete(Book).where(Book.book_id.in_(book_ids)))
        return result.rowcount

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def list_books(self, filters: BookQuery) -> Tuple[List[Book], Pagination]:
        """필터/정렬/페이지네이션 적용한 책 목록"""
        with unit_of_work(self.session, "list_books", commit=False, page=filters.page, limit=filters.limit):
            query = select(Book)

            if filters.title:
                query = query.where(Book.title.ilike(f"%{filters.title}%"))
            if filters.publisher:
                query = query.where(Book.publisher.ilike(f"%{filters.publisher}%"))
            if filters.min_price:
                query = query.where(Book.price >= parse_price(filters.min_price))
            if filters.max_price:
                query = query.where(Book.price <= parse_price(filters.max_price))
            if filters.category:
                query = query.where(Book.categories.any(Category.name.ilike(f"%{filters.category}%")))
            if filters.keyword:
                query = query.where(Book.keywords.any(Keyword.name.ilike(f"%{filters.keyword}%")))

            total = self.session.execute(
                select(func.count()).select_from(query.subquery())
            ).scalar_one()

            sort_column = SORT_FIELDS.get(filters.sort_by, Book.book_id)
            sort_dir = filters.sort_dir.upper() if filters.sort_dir.upper() in SORT_DIRECTIONS else "ASC"
            ordering = sort_column.desc() if sort_dir == "DESC" else sort_column.asc()

            query = (
                query.order_by(ordering, Book.book_id)
                .offset((filters.page - 1) * filters.limit)
                .limit(filters.limit)
            )
            books = list(self.session.execute(query).scalars().all())

        pagination = Pagination(
            total_items=total,
            total_pages=math.ceil(total / filters.limit) if total else 0,
            current_page=filters.page,
            items_per_page=filters.limit,
        )
        logger.debug("Listed books.", extra={"total_items": total, "page": filters.page, "returned": len(books)})
        return books, pagination

    def get_book(self, book_id: int) -> Book:
        """책 ID로 조회"""
        with unit_of_work(self.session, "get_book", commit=False, book_id=book_id):
            return self._require(book_id)

    def list_keywords(self, search: Optional[str] = None) -> List[Keyword]:
        """키워드 목록 (이름순)"""
        with unit_of_work(self.session, "list_keywords", commit=False, search=search):
            query = select(Keyword).order_by(Keyword.name)
            if search:
                query = query.where(Keyword.name.ilike(f"%{search}%"))
            return list(self.session.execute(query).scalars().all())

    # ------------------------------------------------------------------
    # 변경 작업
    # ------------------------------------------------------------------

    def create_book(self, data: BookCreate) -> Book:
        """새 책 생성 (카테고리/키워드 연결 포함, 하나의 트랜잭션)"""
        with tracer.start_as_current_span("book_manager.create_book") as span:
            with unit_of_work(self.session, "create_book", book_title=data.title):
                book = Book(
                    title=self._required_text(data.title, "title"),
                    description=self._required_text(data.description, "description"),
                    price=self._price(data.price),
                    stock=data.stock,
                    publisher=self._required_text(data.publisher, "publisher"),
                )
                book.categories = self._resolve_categories(data.categories)
                book.keywords = self._resolve_keywords(data.keywords)
                self.session.add(book)
                self.session.flush()
                book_id = book.book_id

            span.set_attribute("app.book.id", book_id)
            logger.info("Book created successfully.", extra={"book_id": book_id, "book_title": data.title})
            return book

    def update_book(self, book_id: int, data: BookUpdate) -> Book:
        """책 정보 부분 수정. categories/keywords 가 전달되면 연결 전체를 교체"""
        update_data = data.model_dump(exclude_unset=True)
        with tracer.start_as_current_span("book_manager.update_book") as span:
            span.set_attribute("app.book.id", book_id)

            with unit_of_work(self.session, "update_book", book_id=book_id, fields=sorted(update_data)):
                book = self._require(book_id)

                for field in ("title", "description", "publisher"):
                    if field in update_data:
                        setattr(book, field, self._required_text(update_data[field], field))
                if "price" in update_data:
                    book.price = self._price(update_data["price"])
                if "stock" in update_data:
                    if update_data["stock"] is None:
                        raise ValidationError(REQUIRED_FIELDS_MESSAGE, {"field": "stock"})
                    book.stock = update_data["stock"]
                if update_data.get("categories") is not None:
                    book.categories = self._resolve_categories(update_data["categories"])
                if update_data.get("keywords") is not None:
                    book.keywords = self._resolve_keywords(update_data["keywords"])

                self.session.flush()

            logger.info("Book updated successfully.", extra={"book_id": book_id, "fields": sorted(update_data)})
            return book

    def delete_book(self, book_id: int) -> None:
        """책 삭제 (연결 정보 포함)"""
        with unit_of_work(self.session, "delete_book", book_id=book_id):
            self._require(book_id)
            self._delete_ids([book_id])
        logger.info("Book deleted successfully.", extra={"book_id": book_id})

    def delete_books(self, book_ids: List[int]) -> BatchDeleteResponse:
        """여러 책 일괄 삭제. 존재하지 않는 ID 는 not_found_ids 로 보고"""
        with unit_of_work(self.session, "delete_books", requested_count=len(book_ids or [])):
            if not book_ids:
                raise ValidationError("Please provide an array of book IDs to delete")

            existing_ids = list(
                self.session.execute(
                    select(Book.book_id).where(Book.book_id.in_(book_ids)).order_by(Book.book_id)
                ).scalars().all()
            )
            if not existing_ids:
                raise NotFoundError("None of the specified books were found", {"book_ids": list(book_ids)})

            deleted_count = self._delete_ids(existing_ids)

        existing = set(existing_ids)
        not_found_ids = [book_id for book_id in book_ids if book_id not in existing]
        logger.info("Books deleted in batch.", extra={"deleted_count": deleted_count, "not_found_count": len(not_found_ids)})
        return BatchDeleteResponse(
            deleted_count=deleted_count,
            deleted_ids=existing_ids,
            not_found_ids=not_found_ids,
        )
