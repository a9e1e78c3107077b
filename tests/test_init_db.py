# /tests/test_init_db.py

import pytest
from sqlalchemy import func, select

from catalog.core import init_db
from catalog.core.exceptions import ValidationError
from catalog.core.init_db import initialize_categories
from catalog.models.category import Category


def test_seed_creates_sample_tree_once(db_session, category_manager):
    """
    GIVEN an empty store
    WHEN the sample categories are seeded twice
    THEN the tree is created the first time only.
    """
    assert initialize_categories(db_session) is True
    assert initialize_categories(db_session) is False

    tree = category_manager.list_tree()
    assert [node.name for node in tree] == ["Fiction", "Non-Fiction"]
    assert [node.name for node in tree[0].children] == ["Fantasy", "Sci-Fi"]
    assert [node.name for node in tree[0].children[1].children] == ["Cyberpunk"]
    assert [node.name for node in tree[1].children] == ["History"]


def test_failed_seed_leaves_no_partial_tree(db_session, monkeypatch):
    """
    GIVEN a sample tree whose last entry is invalid
    WHEN the seed runs
    THEN it fails and none of the earlier categories are kept.
    """
    monkeypatch.setattr(init_db, "SAMPLE_CATEGORIES", [
        ("Fiction", [("Sci-Fi", [])]),
        ("  ", []),
    ])

    with pytest.raises(ValidationError):
        initialize_categories(db_session)

    count = db_session.execute(select(func.count()).select_from(Category)).scalar_one()
    assert count == 0
