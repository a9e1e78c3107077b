import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set

from opentelemetry import trace
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.models.book import Book
from catalog.models.category import BookCategory, Category
from catalog.schemas.category import CategoryTreeNode
from catalog.services.transaction import unit_of_work

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

NAME_MAX_LENGTH = 100


class _Unset:
    def __repr__(self):
        return "UNSET"


# update_category 에서 "전달되지 않음"과 "None(최상위로 이동)"을 구분하기 위한 값
UNSET = _Unset()


def validate_category_name(name) -> str:
    """카테고리 이름 검증 (공백 제거 후 비어 있으면 안 됨)"""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Category name is required", {"category_name": name})
    clean_name = name.strip()
    if len(clean_name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Category name must be at most {NAME_MAX_LENGTH} characters",
            {"category_name": clean_name[:NAME_MAX_LENGTH]},
        )
    return clean_name


class CategoryManager:
    """
    카테고리 계층(포레스트) 관리

    - 부모/자식 관계는 parent_id 값으로만 다루고, 하위 탐색은 레벨 단위 parent_id 조회로 수행
    - 변경 작업은 검사(존재/순환)와 쓰기를 하나의 트랜잭션에서 처리
    - 삭제는 모든 하위 카테고리와 책-카테고리 연결까지 함께 삭제 (cascade)
    """

    def __init__(self, db_session: Session):
        self.session = db_session

    # ------------------------------------------------------------------
    # 저장소 조회 헬퍼
    # ------------------------------------------------------------------

    def _find(self, category_id: int, lock: bool = False) -> Optional[Category]:
        query = select(Category).where(Category.category_id == category_id)
        if lock:
            query = query.with_for_update()
        return self.session.execute(query).scalar_one_or_none()

    def _require(self, category_id: int, lock: bool = False, label: str = "Category") -> Category:
        category = self._find(category_id, lock=lock)
        if category is None:
            raise NotFoundError(f"{label} with ID {category_id} not found", {"category_id": category_id})
        return category

    def _child_ids(self, parent_ids: List[int]) -> List[int]:
        query = select(Category.category_id).where(Category.parent_id.in_(parent_ids))
        return list(self.session.execute(query).scalars().all())

    def _descendant_levels(self, category_id: int) -> List[List[int]]:
        """하위 카테고리 ID를 깊이별로 수집 (BFS, 손상된 데이터의 순환에도 종료)"""
        visited = {category_id}
        levels = []
        frontier = [category_id]
        while frontier:
            next_level = [cid for cid in self._child_ids(frontier) if cid not in visited]
            if not next_level:
                break
            visited.update(next_level)
            levels.append(next_level)
            frontier = next_level
        return levels

    def _check_new_parent(self, category_id: int, parent_id: int):
        # 자기 자신을 부모로 지정하는 경우
        if parent_id == category_id:
            raise ValidationError(
                "A category cannot be its own parent",
                {"category_id": category_id, "parent_id": parent_id},
            )
        self._require(parent_id, label="Parent category")
        # 하위 카테고리를 부모로 지정하면 순환 참조
        descendants = {cid for level in self._descendant_levels(category_id) for cid in level}
        if parent_id in descendants:
            raise ValidationError(
                "Cannot set a descendant category as the parent (circular reference)",
                {"category_id": category_id, "parent_id": parent_id},
            )

    # ------------------------------------------------------------------
    # 변경 작업
    # ------------------------------------------------------------------

    def create_category(self, name: str, parent_id: Optional[int] = None) -> Category:
        """새 카테고리 생성"""
        with tracer.start_as_current_span("category_manager.create_category") as span:
            if parent_id is not None:
                span.set_attribute("app.category.parent_id", parent_id)

            with unit_of_work(self.session, "create_category", category_name=name, parent_id=parent_id):
                clean_name = validate_category_name(name)
                if parent_id is not None:
                    self._require(parent_id, label="Parent category")

                new_category = Category(name=clean_name, parent_id=parent_id)
                self.session.add(new_category)
                self.session.flush()  # ID 생성을 위해 flush
                category_id = new_category.category_id

            span.set_attribute("app.category.id", category_id)
            logger.info("Category created successfully.", extra={"category_id": category_id, "category_name": clean_name, "parent_id": parent_id})
            return new_category

    def update_category(self, category_id: int, name=UNSET, parent_id=UNSET) -> Category:
        """카테고리 이름 변경 및 이동 (전달된 값만 반영)"""
        with tracer.start_as_current_span("category_manager.update_category") as span:
            span.set_attribute("app.category.id", category_id)

            with unit_of_work(self.session, "update_category", category_id=category_id):
                category = self._require(category_id, lock=True)

                if name is not UNSET:
                    category.name = validate_category_name(name)

                if parent_id is not UNSET:
                    if parent_id is not None:
                        self._check_new_parent(category_id, parent_id)
                    category.parent_id = parent_id

                self.session.flush()

            logger.info("Category updated successfully.", extra={"category_id": category_id, "parent_id": category.parent_id})
            return category

    def delete_category(self, category_id: int) -> int:
        """카테고리와 모든 하위 카테고리 삭제. 삭제된 하위 카테고리 수 반환"""
        with tracer.start_as_current_span("category_manager.delete_category") as span:
            span.set_attribute("app.category.id", category_id)

            with unit_of_work(self.session, "delete_category", category_id=category_id):
                self._require(category_id, lock=True)
                levels = self._descendant_levels(category_id)
                removed_ids = [category_id] + [cid for level in levels for cid in level]

                # 책-카테고리 연결 먼저 제거
                self.session.execute(
                    delete(BookCategory).where(BookCategory.category_id.in_(removed_ids))
                )
                # 가장 깊은 레벨부터 삭제해 부모 참조 제약을 지킨다
                for level in reversed(levels):
                    self.session.execute(delete(Category).where(Category.category_id.in_(level)))
                self.session.execute(delete(Category).where(Category.category_id == category_id))

            descendant_count = len(removed_ids) - 1
            span.set_attribute("app.category.descendants_removed", descendant_count)
            logger.info("Category deleted with descendants.", extra={"category_id": category_id, "descendant_count": descendant_count})
            return descendant_count

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_category(self, category_id: int) -> Category:
        """카테고리 ID로 카테고리 조회"""
        with unit_of_work(self.session, "get_category", commit=False, category_id=category_id):
            category = self._require(category_id)
        logger.debug("Category retrieved.", extra={"category_id": category_id})
        return category

    def get_children(self, category_id: int) -> List[Category]:
        """직계 하위 카테고리 조회 (이름순)"""
        with unit_of_work(self.session, "get_children", commit=False, category_id=category_id):
            self._require(category_id)
            query = (
                select(Category)
                .where(Category.parent_id == category_id)
                .order_by(Category.name, Category.category_id)
            )
            return list(self.session.execute(query).scalars().all())

    def get_ancestors(self, category_id: int) -> List[Category]:
        """특정 카테고리의 모든 상위 카테고리 조회 (최상위부터)"""
        with unit_of_work(self.session, "get_ancestors", commit=False, category_id=category_id):
            category = self._require(category_id)
            ancestors = []
            visited = {category.category_id}
            parent_id = category.parent_id
            while parent_id is not None and parent_id not in visited:
                parent = self._find(parent_id)
                if parent is None:
                    break
                visited.add(parent_id)
                ancestors.append(parent)
                parent_id = parent.parent_id
        ancestors.reverse()
        return ancestors

    def list_descendant_ids(self, category_id: int) -> Set[int]:
        """특정 카테고리의 모든 하위 카테고리 ID (자기 자신 제외)"""
        with unit_of_work(self.session, "list_descendant_ids", commit=False, category_id=category_id):
            self._require(category_id)
            levels = self._descendant_levels(category_id)
        descendant_ids = {cid for level in levels for cid in level}
        logger.debug("Collected descendant ids.", extra={"category_id": category_id, "depth": len(levels), "descendant_count": len(descendant_ids)})
        return descendant_ids

    def list_tree(self, root_only: bool = False, search: Optional[str] = None) -> List[CategoryTreeNode]:
        """
        카테고리 트리 조회

        모든 레벨에서 이름 오름차순. root_only 면 최상위 카테고리만(하위 없이),
        search 가 있으면 이름이 일치하는 카테고리를 최상위로 하여 각자의 하위 트리를 반환.
        """
        with unit_of_work(self.session, "list_tree", commit=False, root_only=root_only, search=search):
            query = select(Category).order_by(Category.name, Category.category_id)
            categories = list(self.session.execute(query).scalars().all())

        needle = search.strip().lower() if search and search.strip() else None

        def matches(category: Category) -> bool:
            return needle is None or needle in category.name.lower()

        if root_only:
            return [self._to_node(c) for c in categories if c.parent_id is None and matches(c)]

        children_index: Dict[int, List[Category]] = defaultdict(list)
        for category in categories:
            if category.parent_id is not None:
                children_index[category.parent_id].append(category)

        if needle is None:
            tops = [c for c in categories if c.parent_id is None]
        else:
            tops = [c for c in categories if matches(c)]

        tree = []
        for top in tops:
            root_node = self._to_node(top)
            visited = {top.category_id}
            stack = [root_node]
            while stack:
                node = stack.pop()
                for child in children_index.get(node.category_id, []):
                    if child.category_id in visited:
                        continue
                    visited.add(child.category_id)
                    child_node = self._to_node(child)
                    node.children.append(child_node)
                    stack.append(child_node)
            tree.append(root_node)

        logger.debug("Built category tree.", extra={"root_count": len(tree), "category_count": len(categories)})
        return tree

    @staticmethod
    def _to_node(category: Category) -> CategoryTreeNode:
        return CategoryTreeNode(
            category_id=category.category_id,
            name=category.name,
            parent_id=category.parent_id,
            children=[],
        )

    def get_category_books(self, category_id: int, include_subcategories: bool = False) -> List[Book]:
        """카테고리에 속한 책 조회 (하위 카테고리 포함 여부 선택)"""
        with unit_of_work(self.session, "get_category_books", commit=False, category_id=category_id):
            self._require(category_id)
            category_ids = [category_id]
            if include_subcategories:
                category_ids.extend(cid for level in self._descendant_levels(category_id) for cid in level)

            book_ids = (
                select(BookCategory.book_id)
                .where(BookCategory.category_id.in_(category_ids))
                .distinct()
            )
            query = select(Book).where(Book.book_id.in_(book_ids)).order_by(Book.title, Book.book_id)
            books = list(self.session.execute(query).scalars().all())

        logger.debug("Retrieved books in category.", extra={"category_id": category_id, "include_subcategories": include_subcategories, "book_count": len(books)})
        return books
