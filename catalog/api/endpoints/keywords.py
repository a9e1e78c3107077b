from typing import List, Optional

from fastapi import APIRouter, Depends

from catalog.api.dependencies import get_book_manager, to_http_exception
from catalog.core.exceptions import CatalogError
from catalog.schemas.book import KeywordResponse
from catalog.services.book_manager import BookManager

router = APIRouter()


@router.get("/", response_model=List[KeywordResponse], summary="List keywords")
def read_keywords(
    search: Optional[str] = None,
    manager: BookManager = Depends(get_book_manager)
):
    try:
        return manager.list_keywords(search)
    except CatalogError as e:
        raise to_http_exception(e)
