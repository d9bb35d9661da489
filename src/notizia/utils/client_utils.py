"""
Client list helpers.

Input validation for the client form, search over the client list, and
the label shown when confirming a delete.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..schemas.domain import Client

MIN_NAME_LENGTH = 2


@dataclass
class ClientValidation:
    """Outcome of validate_client_input."""

    ok: bool
    errors: dict[str, str] = field(default_factory=dict)
    name: str = ""


def validate_client_input(name: Optional[str]) -> ClientValidation:
    """
    Validate a client name entered in a form.

    Args:
        name: Raw input (surrounding whitespace is ignored)

    Returns:
        ClientValidation with the trimmed name and per-field messages

    Examples:
        >>> validate_client_input("  Anna ").name
        'Anna'
        >>> validate_client_input("A").errors
        {'name': 'Mindestens 2 Zeichen'}
    """
    cleaned = (name or "").strip()
    errors = {}
    if not cleaned:
        errors["name"] = "Name ist erforderlich"
    elif len(cleaned) < MIN_NAME_LENGTH:
        errors["name"] = f"Mindestens {MIN_NAME_LENGTH} Zeichen"
    return ClientValidation(ok=not errors, errors=errors, name=cleaned)


def filter_and_sort_clients(
    clients: Iterable[Client], query: Optional[str] = None
) -> list[Client]:
    """
    Search clients by name, newest first.

    Matching is a case-insensitive substring match; an empty query keeps
    every client. Newest means highest id.
    """
    q = (query or "").strip().lower()
    matches = [c for c in clients if not q or q in c.name.lower()]
    return sorted(matches, key=lambda c: c.id, reverse=True)


def client_label_for_delete(clients: Iterable[Client], client_id: int) -> str:
    """Label for a delete confirmation: '<name> (#<id>)', or '#<id>' if unknown."""
    for client in clients:
        if client.id == client_id:
            return f"{client.name} (#{client.id})"
    return f"#{client_id}"
