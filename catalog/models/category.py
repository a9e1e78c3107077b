from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index
from sqlalchemy.sql import func

from catalog.config.database import Base


class Category(Base):
    """
    카테고리 계층 구조를 관리하는 테이블
    - parent_id: 상위 카테고리 ID (최상위=NULL)
    - 부모/자식 관계는 ID 값으로만 표현하고, 하위 탐색은 parent_id 조회로 수행
    """
    __tablename__ = 'categories'

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    parent_id = Column(Integer, ForeignKey('categories.category_id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # 인덱스 생성
    __table_args__ = (
        Index('idx_category_parent', 'parent_id'),
        Index('idx_category_name', 'name'),
    )

    def __repr__(self):
        return f"<Category id={self.category_id} name={self.name!r} parent_id={self.parent_id}>"


class BookCategory(Base):
    """책과 카테고리 간의 다대다 관계를 관리하는 테이블"""
    __tablename__ = 'book_categories'

    book_id = Column(Integer, ForeignKey('books.book_id', ondelete='CASCADE'), primary_key=True)
    category_id = Column(Integer, ForeignKey('categories.category_id', ondelete='CASCADE'), primary_key=True)

    __table_args__ = (
        Index('idx_book_category_category', 'category_id'),
    )
