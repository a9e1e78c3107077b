# catalog/models/__init__.py
from catalog.models.category import Category, BookCategory
from catalog.models.book import Book, Keyword, BookKeyword

# Export all models that should be created in the database
__all__ = ['Category', 'BookCategory', 'Book', 'Keyword', 'BookKeyword']
