from fastapi import APIRouter

from catalog.api.endpoints import books, categories, keywords

api_router = APIRouter()
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(books.router, prefix="/books", tags=["books"])
api_router.include_router(keywords.router, prefix="/keywords", tags=["keywords"])
