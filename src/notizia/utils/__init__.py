"""Utility functions for practice records."""

from .client_utils import (
    ClientValidation,
    client_label_for_delete,
    filter_and_sort_clients,
    validate_client_input,
)

__all__ = [
    # Client helpers
    "ClientValidation",
    "validate_client_input",
    "filter_and_sort_clients",
    "client_label_for_delete",
]
