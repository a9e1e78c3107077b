from .category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryDetailResponse,
    CategoryDescendantsResponse,
    CategoryDeleteResponse,
)
from .book import (
    BookCreate,
    BookUpdate,
    BookResponse,
    BookQuery,
    BookListResponse,
    BatchDeleteRequest,
    BatchDeleteResponse,
    KeywordResponse,
)

# Export all schemas that should be available for import
__all__ = [
    'CategoryCreate',
    'CategoryUpdate',
    'CategoryResponse',
    'CategoryTreeNode',
    'CategoryDetailResponse',
    'CategoryDescendantsResponse',
    'CategoryDeleteResponse',
    'BookCreate',
    'BookUpdate',
    'BookResponse',
    'BookQuery',
    'BookListResponse',
    'BatchDeleteRequest',
    'BatchDeleteResponse',
    'KeywordResponse',
]
