from dataclasses import replace

import pytest

from task_api.db import MEMORY_DB, SQLiteRepository
from task_api.errors import NotFoundError, StorageError
from task_api.repositories import InMemoryRepository, build_repository
from task_api.schemas import TaskCreate, TaskUpdate
from task_api.settings import get_settings


def make(title="Task", **extra) -> TaskCreate:
    return TaskCreate.model_validate({"title": title, **extra})


def patch(**fields) -> TaskUpdate:
    return TaskUpdate.model_validate(fields)


class TestCreateAndGet:
    def test_create_applies_defaults(self, repo):
        task = repo.create(make("Buy milk"))
        assert task.id == 1
        assert task.title == "Buy milk"
        assert task.description == ""
        assert task.completed is False
        assert task.user_id is None

    def test_create_keeps_given_fields(self, repo):
        task = repo.create(make("Pay rent", description="Before Friday", completed=True, userId="u-1"))
        assert (task.title, task.description, task.completed, task.user_id) == (
            "Pay rent",
            "Before Friday",
            True,
            "u-1",
        )

    def test_ids_increase(self, repo):
        ids = [repo.create(make(f"T{i}")).id for i in range(4)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 4

    def test_get_round_trip(self, repo):
        created = repo.create(make("Round trip", userId="x"))
        assert repo.get(created.id) == created

    def test_get_missing_returns_none(self, repo):
        assert repo.get(12345) is None


class TestList:
    def test_list_all_in_store_order(self, repo):
        created = [repo.create(make(f"T{i}", userId="a" if i % 2 else None)) for i in range(5)]
        assert [t.id for t in repo.list()] == [t.id for t in created]

    def test_list_by_owner_desc(self, repo):
        for i, owner in enumerate(["a", "b", "a", "a", "b"]):
            repo.create(make(f"T{i}", userId=owner))
        owned = repo.list("a")
        assert [t.user_id for t in owned] == ["a", "a", "a"]
        assert [t.id for t in owned] == [4, 3, 1]

    def test_list_by_owner_no_match(self, repo):
        repo.create(make("T", userId="a"))
        assert repo.list("zzz") == []


class TestUpdate:
    def test_update_merges_only_supplied_fields(self, repo):
        created = repo.create(make("Keep", description="desc", userId="owner"))
        updated = repo.update(created.id, patch(completed=True))
        assert updated == replace(created, completed=True)
        assert repo.get(created.id) == updated

    def test_update_empty_payload(self, repo):
        created = repo.create(make("Same"))
        assert repo.update(created.id, patch()) == created

    def test_update_clears_owner(self, repo):
        created = repo.create(make("Owned", userId="o"))
        assert repo.update(created.id, patch(userId=None)).user_id is None

    @pytest.mark.parametrize("fields", [{}, {"completed": True}, {"title": "New title"}])
    def test_update_missing_raises(self, repo, fields):
        with pytest.raises(NotFoundError) as excinfo:
            repo.update(99, patch(**fields))
        assert excinfo.value.task_id == 99


class TestDelete:
    def test_delete_removes_row(self, repo):
        created = repo.create(make("Gone"))
        assert repo.delete(created.id) is None
        assert repo.get(created.id) is None

    def test_delete_missing_is_noop(self, repo):
        kept = repo.create(make("Kept"))
        repo.delete(kept.id + 100)
        assert repo.list() == [kept]


class TestOutOfRangeIds:
    @pytest.mark.parametrize("task_id", [2**63, 2**70, -(2**63) - 1])
    def test_behaves_as_absent(self, repo, task_id):
        kept = repo.create(make("Kept"))
        assert repo.get(task_id) is None
        with pytest.raises(NotFoundError):
            repo.update(task_id, patch(completed=True))
        assert repo.delete(task_id) is None
        assert repo.list() == [kept]


class TestSQLiteSpecifics:
    def test_data_survives_new_repository(self, tmp_path):
        path = str(tmp_path / "nested" / "tasks.db")
        created = SQLiteRepository(path).create(make("Persisted"))
        assert SQLiteRepository(path).get(created.id) == created

    def test_memory_database_shares_one_connection(self):
        repo = SQLiteRepository(MEMORY_DB)
        try:
            created = repo.create(make("In memory"))
            assert repo.get(created.id) == created
        finally:
            repo.close()

    def test_without_schema_sync_statements_fail(self, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "bare.db"), create_schema=False)
        with pytest.raises(StorageError):
            repo.list()
        with pytest.raises(StorageError):
            repo.create(make("No table"))

    def test_not_found_is_not_wrapped(self, sqlite_repo):
        with pytest.raises(NotFoundError):
            sqlite_repo.update(1, patch(title="Nope"))

    def test_update_raises_when_write_matches_no_row(self, tmp_path):
        path = str(tmp_path / "tasks.db")
        created = SQLiteRepository(path).create(make("Contested"))

        class DeletingAfterRead(SQLiteRepository):
            def _select_one(self, conn, task_id):
                row = super()._select_one(conn, task_id)
                conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
                return row

        with pytest.raises(NotFoundError):
            DeletingAfterRead(path).update(created.id, patch(completed=True))
        # The read, the delete and the failed write were one transaction, all rolled back
        assert SQLiteRepository(path).get(created.id) == created

    def test_update_reads_inside_write_transaction(self, tmp_path):
        path = str(tmp_path / "tasks.db")
        created = SQLiteRepository(path).create(make("Locked"))
        seen = []

        class RecordingRead(SQLiteRepository):
            def _select_one(self, conn, task_id):
                seen.append(conn.in_transaction)
                return super()._select_one(conn, task_id)

        RecordingRead(path).update(created.id, patch(title="Relocked"))
        assert seen == [True]


class TestBuildRepository:
    def test_memory_backend(self):
        settings = replace(get_settings(), persistence_backend="memory")
        assert isinstance(build_repository(settings), InMemoryRepository)

    def test_sqlite_backend(self, tmp_path):
        settings = replace(
            get_settings(),
            persistence_backend="sqlite",
            sqlite_db_path=str(tmp_path / "built.db"),
            schema_sync=True,
        )
        repo = build_repository(settings)
        assert isinstance(repo, SQLiteRepository)
        assert repo.list() == []
