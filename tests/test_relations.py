"""Tests for the member/parent relationship."""

from __future__ import annotations

import sqlite3

import pytest

from tskpay.database import crud
from tskpay.database.errors import IntegrityError
from tskpay.database.relations import (
    get_member_parents,
    get_parent_members,
    member_parent_id,
    set_member_parents,
)


@pytest.fixture
def family(db: sqlite3.Connection) -> sqlite3.Connection:
    """Two parents and two members, no links."""
    with db:
        for parent_id in ("par-1", "par-2"):
            crud.create(db, "parents", {"id": parent_id, "first_name": "P", "last_name": parent_id})
        for member_id in ("mem-1", "mem-2"):
            crud.create(db, "members", {"id": member_id, "first_name": "M", "last_name": member_id})
    return db


@pytest.mark.unit
def test_member_parent_id_format() -> None:
    assert member_parent_id("mem-1", "par-2", 1) == "mem-1_par-2_1"


@pytest.mark.integration
def test_set_then_get(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-1", "par-2"])

    assert sorted(get_member_parents(family, "mem-1")) == ["par-1", "par-2"]
    assert get_parent_members(family, "par-2") == ["mem-1"]
    keys = {row[0] for row in family.execute("SELECT id FROM member_parents")}
    assert keys == {"mem-1_par-1_0", "mem-1_par-2_1"}


@pytest.mark.integration
def test_set_replaces_previous_links(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-1", "par-2"])
    set_member_parents(family, "mem-1", ["par-2"])

    assert get_member_parents(family, "mem-1") == ["par-2"]
    assert get_parent_members(family, "par-1") == []


@pytest.mark.integration
def test_empty_list_unlinks_everything(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-1"])
    set_member_parents(family, "mem-1", [])
    assert get_member_parents(family, "mem-1") == []


@pytest.mark.integration
def test_other_members_untouched(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-2", ["par-1"])
    set_member_parents(family, "mem-1", ["par-1", "par-2"])
    set_member_parents(family, "mem-1", [])

    assert get_member_parents(family, "mem-2") == ["par-1"]


@pytest.mark.integration
def test_set_is_committed(family: sqlite3.Connection, sqlite_path) -> None:
    set_member_parents(family, "mem-1", ["par-1"])

    other = sqlite3.connect(sqlite_path)
    try:
        rows = other.execute("SELECT parent_id FROM member_parents WHERE member_id = 'mem-1'").fetchall()
    finally:
        other.close()
    assert rows == [("par-1",)]


@pytest.mark.integration
def test_unknown_parent_rolls_back(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-1"])

    with pytest.raises(IntegrityError):
        set_member_parents(family, "mem-1", ["par-2", "par-missing"])

    assert get_member_parents(family, "mem-1") == ["par-1"]


@pytest.mark.integration
def test_duplicate_parent_ids_roll_back(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-2"])

    with pytest.raises(IntegrityError):
        set_member_parents(family, "mem-1", ["par-1", "par-1"])

    assert get_member_parents(family, "mem-1") == ["par-2"]


@pytest.mark.integration
def test_unknown_member_rejected(family: sqlite3.Connection) -> None:
    with pytest.raises(IntegrityError):
        set_member_parents(family, "mem-missing", ["par-1"])


@pytest.mark.integration
def test_links_cascade_with_parent_and_member(family: sqlite3.Connection) -> None:
    set_member_parents(family, "mem-1", ["par-1", "par-2"])
    set_member_parents(family, "mem-2", ["par-1"])

    with family:
        crud.delete(family, "parents", "par-1")
    assert get_member_parents(family, "mem-1") == ["par-2"]
    assert get_member_parents(family, "mem-2") == []

    with family:
        crud.delete(family, "members", "mem-1")
    assert get_parent_members(family, "par-2") == []


@pytest.mark.integration
def test_failure_keeps_callers_pending_writes(family: sqlite3.Connection) -> None:
    crud.create(family, "parents", {"id": "par-3", "first_name": "P", "last_name": "par-3"})
    assert family.in_transaction

    with pytest.raises(IntegrityError):
        set_member_parents(family, "mem-missing", ["par-3"])

    assert family.in_transaction
    assert crud.get_by_id(family, "parents", "par-3") is not None


@pytest.mark.integration
def test_success_leaves_callers_transaction_open(family: sqlite3.Connection) -> None:
    crud.create(family, "parents", {"id": "par-3", "first_name": "P", "last_name": "par-3"})

    set_member_parents(family, "mem-1", ["par-3"])
    assert family.in_transaction
    assert get_member_parents(family, "mem-1") == ["par-3"]

    family.rollback()
    assert crud.get_by_id(family, "parents", "par-3") is None
    assert get_member_parents(family, "mem-1") == []
