"""Ledger persistence: repositories, serialization and sale transactions."""

from installment_ledger.store.json_file import JsonFileLedgerStore
from installment_ledger.store.memory import InMemoryLedgerStore, LedgerRepository
from installment_ledger.store.transactions import SaleBook

__all__ = ["InMemoryLedgerStore", "JsonFileLedgerStore", "LedgerRepository", "SaleBook"]
