# /tests/test_book_manager.py

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.models.book import Book
from catalog.models.category import Category
from catalog.schemas.book import BookCreate, BookQuery, BookUpdate


def _book(**overrides):
    data = {
        "title": "Dune",
        "description": "Desert planet",
        "price": "Rp. 150.000,00",
        "stock": 5,
        "publisher": "Chilton",
    }
    data.update(overrides)
    return BookCreate(**data)


def _count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def shelf(book_manager, sample_tree):
    """Three books spread over the sample category tree."""
    dune = book_manager.create_book(_book(categories=[sample_tree["sci_fi"]], keywords=["desert", "spice"]))
    neuromancer = book_manager.create_book(_book(
        title="Neuromancer",
        description="Cyberspace",
        price=90000,
        stock=2,
        publisher="Ace",
        categories=[sample_tree["cyberpunk"]],
        keywords=["hacker"],
    ))
    hobbit = book_manager.create_book(_book(
        title="The Hobbit",
        description="There and back again",
        price="45000.50",
        stock=0,
        publisher="Allen & Unwin",
        categories=[sample_tree["fantasy"]],
    ))
    return {"dune": dune.book_id, "neuromancer": neuromancer.book_id, "hobbit": hobbit.book_id}


# --- create ---

def test_create_book_parses_price_and_links(book_manager, sample_tree):
    book = book_manager.create_book(_book(categories=[sample_tree["sci_fi"], "Classics"], keywords=["spice", "spice"]))

    assert book.price == Decimal("150000.00")
    assert sorted(c.name for c in book.categories) == ["Classics", "Sci-Fi"]
    assert [k.name for k in book.keywords] == ["spice"]


def test_create_book_reuses_category_by_name(book_manager, db_session, sample_tree):
    book = book_manager.create_book(_book(categories=["Sci-Fi", str(sample_tree["sci_fi"])]))

    assert [c.category_id for c in book.categories] == [sample_tree["sci_fi"]]
    assert _count(db_session, Category) == len(sample_tree)


def test_create_book_with_missing_category_persists_nothing(book_manager, db_session):
    """
    GIVEN a payload naming a new category and a missing category id
    WHEN the book is created
    THEN NotFoundError is raised and neither the book nor the new category is stored.
    """
    with pytest.raises(NotFoundError):
        book_manager.create_book(_book(categories=["Brand New", 999]))

    assert _count(db_session, Book) == 0
    assert _count(db_session, Category) == 0


@pytest.mark.parametrize("overrides", [
    {"title": "  "},
    {"publisher": ""},
    {"price": -1},
    {"price": "Rp. 1.00"},
])
def test_create_book_rejects_invalid_fields(book_manager, db_session, overrides):
    with pytest.raises(ValidationError):
        book_manager.create_book(_book(**overrides))
    assert _count(db_session, Book) == 0


# --- list ---

def test_list_books_filters_by_category_and_keyword(book_manager, shelf):
    books, pagination = book_manager.list_books(BookQuery(category="punk"))
    assert [b.title for b in books] == ["Neuromancer"]
    assert pagination.total_items == 1

    books, _ = book_manager.list_books(BookQuery(keyword="SPICE"))
    assert [b.title for b in books] == ["Dune"]


def test_list_books_filters_by_price_range(book_manager, shelf):
    books, _ = book_manager.list_books(BookQuery(min_price="Rp. 50.000,00", max_price="100000"))
    assert [b.title for b in books] == ["Neuromancer"]


def test_list_books_sorts_and_paginates(book_manager, shelf):
    books, pagination = book_manager.list_books(BookQuery(sort_by="price", sort_dir="desc", limit=2, page=1))
    assert [b.title for b in books] == ["Dune", "Neuromancer"]
    assert pagination.total_items == 3
    assert pagination.total_pages == 2

    books, pagination = book_manager.list_books(BookQuery(sort_by="price", sort_dir="desc", limit=2, page=2))
    assert [b.title for b in books] == ["The Hobbit"]
    assert pagination.current_page == 2


def test_list_books_falls_back_on_unknown_sort(book_manager, shelf):
    books, _ = book_manager.list_books(BookQuery(sort_by="nope", sort_dir="sideways"))
    assert [b.book_id for b in books] == sorted(shelf.values())


def test_list_books_empty_store(book_manager):
    books, pagination = book_manager.list_books(BookQuery())
    assert books == []
    assert pagination.total_pages == 0


# --- update ---

def test_update_book_changes_only_sent_fields(book_manager, shelf):
    book = book_manager.update_book(shelf["dune"], BookUpdate(price="Rp. 175.000,00"))

    assert book.price == Decimal("175000.00")
    assert book.title == "Dune"
    assert [c.name for c in book.categories] == ["Sci-Fi"]


def test_update_book_replaces_categories(book_manager, shelf, sample_tree):
    book = book_manager.update_book(shelf["dune"], BookUpdate(categories=[sample_tree["fiction"], "Classics"]))
    assert [c.name for c in book.categories] == ["Classics", "Fiction"]


def test_update_book_rejects_null_stock(book_manager, shelf):
    with pytest.raises(ValidationError):
        book_manager.update_book(shelf["dune"], BookUpdate(stock=None))


def test_update_missing_book(book_manager):
    with pytest.raises(NotFoundError):
        book_manager.update_book(404, BookUpdate(title="Nothing"))


# --- delete ---

def test_delete_book(book_manager, db_session, shelf):
    book_manager.delete_book(shelf["dune"])

    with pytest.raises(NotFoundError):
        book_manager.get_book(shelf["dune"])
    assert _count(db_session, Book) == 2


def test_delete_books_reports_missing_ids(book_manager, shelf):
    result = book_manager.delete_books([shelf["hobbit"], 999, shelf["dune"]])

    assert result.deleted_count == 2
    assert result.deleted_ids == sorted([shelf["hobbit"], shelf["dune"]])
    assert result.not_found_ids == [999]


def test_delete_books_requires_ids(book_manager):
    with pytest.raises(ValidationError):
        book_manager.delete_books([])


def test_delete_books_none_found(book_manager, shelf):
    with pytest.raises(NotFoundError):
        book_manager.delete_books([998, 999])


# --- keywords ---

def test_list_keywords(book_manager, shelf):
    assert [k.name for k in book_manager.list_keywords()] == ["desert", "hacker", "spice"]
    assert [k.name for k in book_manager.list_keywords("sp")] == ["spice"]
