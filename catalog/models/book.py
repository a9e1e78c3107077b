from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Numeric, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from catalog.config.database import Base


class Book(Base):
    """책 모델"""
    __tablename__ = "books"

    book_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    publisher = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    categories = relationship(
        "Category",
        secondary="book_categories",
        order_by="Category.name",
        lazy="selectin",
    )
    keywords = relationship(
        "Keyword",
        secondary="book_keywords",
        order_by="Keyword.name",
        lazy="selectin",
    )

    __table_args__ = (
        Index('idx_book_title', 'title'),
        Index('idx_book_publisher', 'publisher'),
    )


class Keyword(Base):
    """키워드 모델"""
    __tablename__ = "keywords"

    keyword_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BookKeyword(Base):
    """책-키워드 연결 모델"""
    __tablename__ = "book_keywords"

    book_id = Column(Integer, ForeignKey("books.book_id", ondelete="CASCADE"), primary_key=True)
    keyword_id = Column(Integer, ForeignKey("keywords.keyword_id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        Index('idx_book_keyword_keyword', 'keyword_id'),
    )
