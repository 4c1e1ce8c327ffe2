"""Tests for the client registry."""

import asyncio
from dataclasses import replace

import pytest

from agenda.clients import ClientRegistry
from agenda.core.client import Client
from agenda.core.errors import InvalidClient, PersistenceError, PersistenceFailure
from agenda.ports.notifier import Level


def run(coro):
    return asyncio.run(coro)


class InMemoryClients:
    def __init__(self, clients: list[Client] | None = None):
        self.rows = list(clients or [])
        self.fail_on: set[str] = set()

    async def fetch_all(self) -> list[Client]:
        if "fetch_all" in self.fail_on:
            raise PersistenceError("fetch_all rejected by server")
        return sorted(self.rows, key=lambda c: c.name)

    async def insert(self, client: Client) -> Client:
        if "insert" in self.fail_on:
            raise PersistenceError("duplicate key value")
        saved = replace(client, id=f"cli-{len(self.rows) + 1}")
        self.rows.append(saved)
        return saved


@pytest.fixture
def backend():
    return InMemoryClients([Client(name="maria", id="cli-0"), Client(name="Carlos", price_per_hour="9", id="cli-9")])


@pytest.fixture
def registry(backend, notifier):
    registry = ClientRegistry(backend, notifier)
    assert run(registry.refetch())
    return registry


class TestClientRow:
    def test_from_row_defaults(self):
        client = Client.from_row({"id": 5, "nome": "Ana", "telefone": None, "preco_hora": None})
        assert client == Client(id="5", name="Ana")
        assert client.price_per_hour == "7"

    def test_to_row_blanks_become_null(self):
        assert Client(name="Ana", phone="912").to_row() == {
            "nome": "Ana",
            "telefone": "912",
            "morada": None,
            "preco_hora": "7",
            "notas": None,
        }


class TestClientRegistry:
    def test_sorted_case_insensitively(self, registry):
        assert [c.name for c in registry.clients] == ["Carlos", "maria"]

    def test_find_ignores_case_and_spaces(self, registry):
        assert registry.find("  CARLOS ").price_per_hour == "9"
        assert registry.find("Rui") is None

    def test_add_keeps_order_and_announces(self, registry, notifier):
        saved = run(registry.add(Client(name=" Ana ", phone="912345678")))
        assert saved.name == "Ana"
        assert saved.id
        assert [c.name for c in registry.clients] == ["Ana", "Carlos", "maria"]
        assert notifier.notices[-1].level is Level.INFO
        assert notifier.notices[-1].title == "Client saved"

    def test_blank_name_rejected(self, registry, backend, notifier):
        assert run(registry.add(Client(name="   "))) is None
        assert len(backend.rows) == 2
        assert isinstance(notifier.errors[0].error, InvalidClient)

    def test_duplicate_rejected(self, registry, notifier):
        assert run(registry.add(Client(name="Maria"))) is None
        assert "already registered" in notifier.errors[0].message

    def test_insert_failure_reported(self, registry, backend, notifier):
        backend.fail_on.add("insert")
        assert run(registry.add(Client(name="Ana"))) is None
        assert len(registry.clients) == 2
        assert notifier.errors[0].title == "Could not save client"
        assert isinstance(notifier.errors[0].error, PersistenceFailure)

    def test_load_failure_reported(self, backend, notifier):
        backend.fail_on.add("fetch_all")
        registry = ClientRegistry(backend, notifier)
        assert run(registry.refetch()) is False
        assert registry.clients == ()
        assert registry.loading is False
        assert notifier.errors[0].title == "Could not load clients"
