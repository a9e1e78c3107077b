from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from catalog.utils.price import format_price

# 가격은 숫자 또는 "Rp. 50.000,00" 형식의 문자열 모두 허용
PriceInput = Union[int, float, Decimal, str]
# 카테고리/키워드는 ID 또는 이름으로 지정
RefInput = Union[int, str]


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: int
    name: str


class KeywordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    keyword_id: int
    name: str


class BookCreate(BaseModel):
    title: str
    description: str
    price: PriceInput
    stock: int = Field(..., ge=0)
    publisher: str
    categories: List[RefInput] = []
    keywords: List[RefInput] = []


class BookUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[PriceInput] = None
    stock: Optional[int] = Field(default=None, ge=0)
    publisher: Optional[str] = None
    categories: Optional[List[RefInput]] = None
    keywords: Optional[List[RefInput]] = None


class BookResponse(BaseModel):
    book_id: int
    title: str
    description: str
    price: str
    price_amount: Decimal
    stock: int
    publisher: str
    categories: List[CategorySummary] = []
    keywords: List[KeywordResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, book) -> "BookResponse":
        """ORM Book -> 응답 (가격은 루피아 형식 문자열로 변환)"""
        return cls(
            book_id=book.book_id,
            title=book.title,
            description=book.description,
            price=format_price(book.price),
            price_amount=Decimal(book.price),
            stock=book.stock,
            publisher=book.publisher,
            categories=[CategorySummary.model_validate(c) for c in book.categories],
            keywords=[KeywordResponse.model_validate(k) for k in book.keywords],
            created_at=book.created_at,
            updated_at=book.updated_at,
        )


class BookQuery(BaseModel):
    """목록 조회 필터/정렬/페이지 조건"""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    title: Optional[str] = None
    category: Optional[str] = None
    keyword: Optional[str] = None
    publisher: Optional[str] = None
    min_price: Optional[str] = None
    max_price: Optional[str] = None
    sort_by: str = "book_id"
    sort_dir: str = "ASC"


class Pagination(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int


class BookListResponse(BaseModel):
    items: List[BookResponse]
    pagination: Pagination


class BatchDeleteRequest(BaseModel):
    ids: List[int]


class BatchDeleteResponse(BaseModel):
    deleted_count: int
    deleted_ids: List[int]
    not_found_ids: List[int]
