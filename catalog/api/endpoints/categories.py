import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog.api.dependencies import get_category_manager, record_span_failure, to_http_exception
from catalog.core.exceptions import CatalogError
from catalog.schemas.book import BookResponse
from catalog.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryDetailResponse,
    CategoryDescendantsResponse,
    CategoryDeleteResponse,
)
from catalog.services.category_manager import CategoryManager, UNSET

router = APIRouter()
tracer = trace.get_tracer("catalog.api.category_router")

logger = logging.getLogger(__name__)


@router.get("/", response_model=List[CategoryTreeNode], summary="Get the category tree")
def read_categories(
    root_only: bool = False,
    search: Optional[str] = None,
    manager: CategoryManager = Depends(get_category_manager)
):
    """카테고리 트리 조회 (이름순, root_only 면 최상위만)"""
    with tracer.start_as_current_span("endpoint.read_categories") as span:
        span.set_attribute("app.category.request.root_only", root_only)
        if search:
            span.set_attribute("app.category.request.search", search)
        try:
            tree = manager.list_tree(root_only=root_only, search=search)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.category.response.root_count", len(tree))
        span.set_status(Status(StatusCode.OK))
        logger.info("Successfully read category tree.", extra={"root_count": len(tree), "root_only": root_only, "search": search})
        return tree


@router.get("/{category_id}", response_model=CategoryDetailResponse, summary="Get a category with its parent, ancestors and children")
def read_category(
    category_id: int,
    manager: CategoryManager = Depends(get_category_manager)
):
    """카테고리 상세 조회"""
    with tracer.start_as_current_span("endpoint.read_category") as span:
        span.set_attribute("app.category.request.id", category_id)
        try:
            category = manager.get_category(category_id)
            ancestors = manager.get_ancestors(category_id)
            children = manager.get_children(category_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        ancestor_items = [CategoryResponse.model_validate(a) for a in ancestors]
        span.set_status(Status(StatusCode.OK))
        return CategoryDetailResponse(
            **CategoryResponse.model_validate(category).model_dump(),
            parent=ancestor_items[-1] if ancestor_items else None,
            ancestors=ancestor_items,
            children=[CategoryResponse.model_validate(c) for c in children],
        )


@router.get("/{category_id}/descendants", response_model=CategoryDescendantsResponse, summary="Preview every descendant of a category")
def read_descendants(
    category_id: int,
    manager: CategoryManager = Depends(get_category_manager)
):
    """하위 카테고리 ID 전체 조회 (삭제 영향 미리보기)"""
    with tracer.start_as_current_span("endpoint.read_descendants") as span:
        span.set_attribute("app.category.request.id", category_id)
        try:
            descendant_ids = manager.list_descendant_ids(category_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.category.response.descendant_count", len(descendant_ids))
        span.set_status(Status(StatusCode.OK))
        return CategoryDescendantsResponse(
            category_id=category_id,
            descendant_ids=sorted(descendant_ids),
            count=len(descendant_ids),
        )


@router.get("/{category_id}/books", response_model=List[BookResponse], summary="Get books in a category")
def read_category_books(
    category_id: int,
    include_subcategories: bool = False,
    manager: CategoryManager = Depends(get_category_manager)
):
    """카테고리에 속한 책 목록"""
    with tracer.start_as_current_span("endpoint.read_category_books") as span:
        span.set_attribute("app.category.request.id", category_id)
        span.set_attribute("app.category.request.include_subcategories", include_subcategories)
        try:
            books = manager.get_category_books(category_id, include_subcategories=include_subcategories)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.category.response.book_count", len(books))
        span.set_status(Status(StatusCode.OK))
        return [BookResponse.from_model(book) for book in books]


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, summary="Create a category")
def create_category(
    category: CategoryCreate,
    manager: CategoryManager = Depends(get_category_manager)
):
    """새 카테고리 생성"""
    with tracer.start_as_current_span("endpoint.create_category") as span:
        if category.parent_id is not None:
            span.set_attribute("app.category.request.parent_id", category.parent_id)

        logger.info("Attempting to create category.", extra={"category_name": category.name, "parent_id": category.parent_id})
        try:
            result = manager.create_category(category.name, category.parent_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.category.response.id", result.category_id)
        span.set_status(Status(StatusCode.OK))
        return result


@router.put("/{category_id}", response_model=CategoryResponse, summary="Rename or move a category")
def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    manager: CategoryManager = Depends(get_category_manager)
):
    """카테고리 수정. 요청 본문에 포함된 필드만 반영"""
    fields = category_update.model_fields_set
    with tracer.start_as_current_span("endpoint.update_category") as span:
        span.set_attribute("app.category.request.id", category_id)

        logger.info("Attempting to update category.", extra={"category_id": category_id, "fields": sorted(fields)})
        try:
            result = manager.update_category(
                category_id,
                name=category_update.name if "name" in fields else UNSET,
                parent_id=category_update.parent_id if "parent_id" in fields else UNSET,
            )
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_status(Status(StatusCode.OK))
        return result


@router.delete("/{category_id}", response_model=CategoryDeleteResponse, summary="Delete a category and all of its descendants")
def delete_category(
    category_id: int,
    manager: CategoryManager = Depends(get_category_manager)
):
    """카테고리 삭제 (하위 카테고리 포함)"""
    with tracer.start_as_current_span("endpoint.delete_category") as span:
        span.set_attribute("app.category.request.id", category_id)

        logger.info("Attempting to delete category.", extra={"category_id": category_id})
        try:
            affected = manager.delete_category(category_id)
        except CatalogError as e:
            record_span_failure(span, e)
            raise to_http_exception(e)

        span.set_attribute("app.category.response.affected_child_categories", affected)
        span.set_status(Status(StatusCode.OK))
        return CategoryDeleteResponse(
            success=True,
            message="Category deleted successfully",
            category_id=category_id,
            affected_child_categories=affected,
        )
