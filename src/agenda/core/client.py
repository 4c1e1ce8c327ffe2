"""Client registry model - no I/O dependencies."""

from dataclasses import dataclass

from .booking import DEFAULT_RATE


@dataclass(frozen=True)
class Client:
    """A regular customer and the defaults used when booking them."""

    name: str
    phone: str = ""
    address: str = ""
    price_per_hour: str = DEFAULT_RATE
    notes: str = ""
    id: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "Client":
        """Create a Client from a remote `clients` row."""
        return cls(
            id=str(row["id"]),
            name=row["nome"],
            phone=row.get("telefone") or "",
            address=row.get("morada") or "",
            price_per_hour=str(row.get("preco_hora") or DEFAULT_RATE),
            notes=row.get("notas") or "",
        )

    def to_row(self) -> dict:
        """Insert payload; empty optional fields are stored as null."""
        return {
            "nome": self.name,
            "telefone": self.phone or None,
            "morada": self.address or None,
            "preco_hora": self.price_per_hour or DEFAULT_RATE,
            "notas": self.notes or None,
        }


def sort_by_name(clients: list[Client]) -> list[Client]:
    return sorted(clients, key=lambda c: c.name.casefold())
