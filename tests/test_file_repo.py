"""Tests for the JSON file repository."""

import asyncio
import json
from datetime import date, datetime, time, timezone

import pytest

from agenda.adapters.file_repo import FileBookingRepository, FileClientRepository
from agenda.core.client import Client
from agenda.core.errors import PersistenceError


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def repo(tmp_path):
    return FileBookingRepository(tmp_path / "data" / "bookings.json")


class TestFileBookingRepository:
    def test_empty_when_missing(self, repo):
        assert run(repo.fetch_all()) == []

    def test_insert_then_fetch(self, repo, make_draft):
        draft = make_draft(date(2026, 5, 4), "09:00", "12:00", client="Ana", address="Rua A", price="21.00")
        saved = run(repo.insert(draft))
        assert saved.id
        assert saved.to_draft() == draft
        assert run(repo.fetch_all()) == [saved]

    def test_rows_use_remote_columns(self, repo, make_draft):
        run(repo.insert(make_draft(date(2026, 5, 4), "09:00", "12:00", client="Ana")))
        row = json.loads(repo.path.read_text())[0]
        assert row["cliente_nome"] == "Ana"
        assert row["data_inicio"] == "2026-05-04T09:00:00+00:00"
        assert row["status"] == "agendado"
        assert row["pago"] is False

    def test_fetch_orders_by_start(self, repo, make_draft):
        run(repo.insert(make_draft(date(2026, 5, 6), "09:00", "10:00", client="later")))
        run(repo.insert(make_draft(date(2026, 5, 4), "09:00", "10:00", client="sooner")))
        assert [b.client for b in run(repo.fetch_all())] == ["sooner", "later"]

    def test_update_partial(self, repo, make_draft):
        saved = run(repo.insert(make_draft(date(2026, 5, 4), "09:00", "12:00")))
        paid_at = datetime(2026, 5, 5, 18, 30, tzinfo=timezone.utc)
        updated = run(repo.update(saved.id, {"paid": True, "paid_at": paid_at}))
        assert updated.paid is True
        assert updated.paid_at == paid_at
        assert updated.start_time == time(9, 0)

    def test_update_missing(self, repo):
        with pytest.raises(PersistenceError, match="not found"):
            run(repo.update("ghost", {"paid": True}))

    def test_delete(self, repo, make_draft):
        saved = run(repo.insert(make_draft(date(2026, 5, 4), "09:00", "12:00")))
        run(repo.delete(saved.id))
        assert run(repo.fetch_all()) == []
        with pytest.raises(PersistenceError):
            run(repo.delete(saved.id))

    def test_corrupt_file(self, repo):
        repo.path.write_text("{not json")
        with pytest.raises(PersistenceError, match="Cannot read"):
            run(repo.fetch_all())

    def test_corrupt_row_is_a_persistence_error(self, repo):
        repo.path.write_text('[{"id": "x", "cliente_nome": "Ana"}]')
        with pytest.raises(PersistenceError, match="Corrupt row"):
            run(repo.fetch_all())


class TestFileClientRepository:
    @pytest.fixture
    def clients(self, tmp_path):
        return FileClientRepository(tmp_path / "clients.json")

    def test_insert_then_fetch_by_name(self, clients):
        run(clients.insert(Client(name="rui")))
        ana = run(clients.insert(Client(name="Ana", address="Rua A", price_per_hour="8")))
        assert ana.id
        assert [c.name for c in run(clients.fetch_all())] == ["Ana", "rui"]
        assert run(clients.fetch_all())[0] == ana

    def test_rows_use_remote_columns(self, clients):
        run(clients.insert(Client(name="Ana")))
        row = json.loads(clients.path.read_text())[0]
        assert row["nome"] == "Ana"
        assert row["telefone"] is None
        assert row["preco_hora"] == "7"
