"""Tests for the SQLAlchemy-backed bug record store."""

from datetime import datetime

import pytest

from app.core.exceptions import ConstraintError, FormatError
from app.core.snowflake import is_valid_bug_id
from app.schemas.bug import BugListQuery


def _values(**overrides):
    values = {
        "title": "Login button broken",
        "description": "Clicking login does nothing",
        "reporter": "Test User",
    }
    values.update(overrides)
    return values


class TestCreate:
    def test_assigns_id_and_defaults(self, repository):
        bug = repository.create(_values())
        assert is_valid_bug_id(bug.id)
        assert bug.status == "open"
        assert bug.priority == "medium"
        assert bug.assigned_to == ""
        assert bug.tags == []
        assert bug.attachments == []
        assert bug.created_at is not None
        assert bug.updated_at is not None

    def test_ids_are_unique(self, repository):
        ids = {repository.create(_values()).id for _ in range(5)}
        assert len(ids) == 5

    def test_missing_reporter_violates_constraint(self, repository):
        values = _values()
        del values["reporter"]
        with pytest.raises(ConstraintError) as exc_info:
            repository.create(values)
        assert exc_info.value.messages == ["Reporter name is required"]

    def test_blank_required_columns_are_all_reported(self, repository):
        with pytest.raises(ConstraintError) as exc_info:
            repository.create({"title": " ", "description": "", "reporter": None})
        assert len(exc_info.value.messages) == 3


class TestFindById:
    def test_returns_record(self, repository):
        bug = repository.create(_values())
        found = repository.find_by_id(bug.id)
        assert found is not None
        assert found.title == "Login button broken"

    def test_unknown_id_returns_none(self, repository):
        assert repository.find_by_id("B123456789") is None

    @pytest.mark.parametrize("bad_id", ["invalid-id", "123", "B", "Babc", "", None])
    def test_malformed_id_raises_format_error(self, repository, bad_id):
        with pytest.raises(FormatError):
            repository.find_by_id(bad_id)


class TestFindMany:
    def test_filters_by_status_and_priority(self, repository):
        repository.create(_values(status="open", priority="low"))
        repository.create(_values(status="in-progress", priority="high"))
        repository.create(_values(status="in-progress", priority="critical"))

        total, bugs = repository.find_many(BugListQuery(status="in-progress"))
        assert total == 2
        assert all(bug.status == "in-progress" for bug in bugs)

        total, bugs = repository.find_many(BugListQuery(status="IN-PROGRESS", priority="critical"))
        assert total == 1
        assert bugs[0].priority == "critical"

    def test_paginates_and_reports_total(self, repository):
        for i in range(15):
            repository.create(_values(title=f"Pagination Bug {i}"))

        total, first = repository.find_many(BugListQuery(page=1, limit=10))
        _, second = repository.find_many(BugListQuery(page=2, limit=10))
        assert total == 15
        assert len(first) == 10
        assert len(second) == 5
        assert not {b.id for b in first} & {b.id for b in second}

    def test_default_sort_is_newest_first(self, repository):
        repository.create(_values(title="Older Bug"))
        repository.create(_values(title="Newer Bug"))

        _, bugs = repository.find_many(BugListQuery())
        assert [b.title for b in bugs] == ["Newer Bug", "Older Bug"]

    def test_sort_by_title_ascending(self, repository):
        for title in ["Charlie", "Alpha", "Bravo"]:
            repository.create(_values(title=title))

        _, bugs = repository.find_many(BugListQuery(sort_by="title", order="asc"))
        assert [b.title for b in bugs] == ["Alpha", "Bravo", "Charlie"]

    def test_unknown_sort_field_falls_back_to_created_at(self, repository):
        repository.create(_values(title="First"))
        repository.create(_values(title="Second"))

        _, bugs = repository.find_many(BugListQuery(sort_by="nonsense", order="asc"))
        assert [b.title for b in bugs] == ["First", "Second"]


class TestUpdateAndDelete:
    def test_update_changes_only_given_columns(self, repository):
        bug = repository.create(_values())
        created_at = bug.created_at

        updated = repository.update_by_id(bug.id, {"status": "resolved"})
        assert updated.status == "resolved"
        assert updated.title == "Login button broken"
        assert updated.id == bug.id
        assert updated.created_at == created_at
        assert updated.updated_at >= created_at

    @pytest.mark.parametrize("values", [{}, {"status": "open"}])
    def test_update_refreshes_updated_at_even_without_changes(self, repository, values):
        bug = repository.create(_values(status="open"))
        stale = datetime(2020, 1, 1)
        bug.updated_at = stale
        repository.db.commit()

        updated = repository.update_by_id(bug.id, values)
        assert updated.updated_at > stale
        assert updated.created_at > stale

    def test_update_unknown_id_returns_none(self, repository):
        assert repository.update_by_id("B42", {"status": "closed"}) is None

    def test_update_blanking_required_column_violates_constraint(self, repository):
        bug = repository.create(_values())
        with pytest.raises(ConstraintError):
            repository.update_by_id(bug.id, {"title": ""})

    def test_update_malformed_id_raises_format_error(self, repository):
        with pytest.raises(FormatError):
            repository.update_by_id("not-an-id", {"status": "closed"})

    def test_delete_returns_snapshot_and_removes_record(self, repository):
        bug = repository.create(_values(title="Bug to Delete"))

        deleted = repository.delete_by_id(bug.id)
        assert deleted.title == "Bug to Delete"
        assert repository.find_by_id(bug.id) is None

    def test_delete_unknown_id_returns_none(self, repository):
        assert repository.delete_by_id("B7") is None


class TestCounts:
    def test_count_by_status(self, repository):
        repository.create(_values(status="open"))
        repository.create(_values(status="open"))
        repository.create(_values(status="closed"))

        assert repository.count() == 3
        assert repository.count(status="open") == 2
        assert repository.count_by("status") == {"open": 2, "closed": 1}
