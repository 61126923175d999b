"""JSON file store: one JSON document per entity type."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

from installment_ledger.exceptions import PersistenceError
from installment_ledger.models.ledger import Account, Customer, Expense, Investor, Sale
from installment_ledger.store.memory import InMemoryLedgerStore
from installment_ledger.store.serialization import (
    account_from_dict,
    customer_from_dict,
    expense_from_dict,
    investor_from_dict,
    sale_from_dict,
    to_dict,
)

logger = logging.getLogger(__name__)

# Entity type -> (store attribute, id field, decoder)
ENTITY_TYPES: dict[str, tuple[str, str, Callable[[dict], Any]]] = {
    "customers": ("customers", "customer_id", customer_from_dict),
    "investors": ("investors", "investor_id", investor_from_dict),
    "accounts": ("accounts", "account_id", account_from_dict),
    "sales": ("sales", "sale_id", sale_from_dict),
    "expenses": ("expenses", "expense_id", expense_from_dict),
}


class JsonFileLedgerStore:
    """Ledger store persisted as JSON files.

    Reads and referential checks are served by an :class:`InMemoryLedgerStore`
    loaded at start-up; every write rewrites the JSON file of the entity type
    it touches. A failed write restores the previous in-memory record and
    raises :class:`PersistenceError`.
    """

    def __init__(self, data_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file store.

        Parameters
        ----------
        data_dir : str | Path
            Directory holding the JSON files; created when missing.
        pretty : bool
            Pretty-print JSON output.
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self.memory = InMemoryLedgerStore()
        self._load()

    def _path(self, entity_type: str) -> Path:
        return self.data_dir / f"{entity_type}.json"

    def _load(self) -> None:
        for entity_type, (attr, id_field, decoder) in ENTITY_TYPES.items():
            file_path = self._path(entity_type)
            if not file_path.exists():
                continue
            try:
                with open(file_path, encoding="utf-8") as f:
                    records = json.load(f)
                target = getattr(self.memory, attr)
                for data in records:
                    target[data[id_field]] = decoder(data)
            except (OSError, ValueError, KeyError) as exc:
                raise PersistenceError(f"Cannot load {file_path}: {exc}") from exc
            logger.debug("Loaded %d %s from %s", len(records), entity_type, file_path)

    def _write(self, entity_type: str) -> None:
        attr = ENTITY_TYPES[entity_type][0]
        data = [to_dict(record) for record in getattr(self.memory, attr).values()]
        file_path = self._path(entity_type)
        tmp_path = file_path.with_suffix(".json.tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            if self.pretty:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            else:
                json.dump(data, f, ensure_ascii=False, default=str)
        tmp_path.replace(file_path)

    def _commit(self, entity_type: str, key: str, apply: Callable[[], Any]) -> Any:
        """Apply an in-memory change and flush it, undoing it if the flush fails."""
        records = getattr(self.memory, ENTITY_TYPES[entity_type][0])
        previous = records.get(key)
        result = apply()
        try:
            self._write(entity_type)
        except OSError as exc:
            if previous is None:
                records.pop(key, None)
            else:
                records[key] = previous
            raise PersistenceError(f"Cannot write {entity_type}: {exc}") from exc
        return result

    # Query methods
    def fetch_all_sales(self, user_id: str) -> list[Sale]:
        return self.memory.fetch_all_sales(user_id)

    def fetch_all_expenses(self, user_id: str) -> list[Expense]:
        return self.memory.fetch_all_expenses(user_id)

    def fetch_all_accounts(self, user_id: str) -> list[Account]:
        return self.memory.fetch_all_accounts(user_id)

    def fetch_all_investors(self, user_id: str) -> list[Investor]:
        return self.memory.fetch_all_investors(user_id)

    def fetch_all_customers(self, user_id: str) -> list[Customer]:
        return self.memory.fetch_all_customers(user_id)

    def get_sale(self, sale_id: str) -> Sale:
        return self.memory.get_sale(sale_id)

    def get_investor(self, investor_id: str) -> Investor:
        return self.memory.get_investor(investor_id)

    # Write methods
    def save_customer(self, customer: Customer) -> Customer:
        return self._commit(
            "customers", customer.customer_id, lambda: self.memory.save_customer(customer)
        )

    def save_investor(self, investor: Investor) -> Investor:
        return self._commit(
            "investors", investor.investor_id, lambda: self.memory.save_investor(investor)
        )

    def save_account(self, account: Account) -> Account:
        return self._commit(
            "accounts", account.account_id, lambda: self.memory.save_account(account)
        )

    def save_sale(self, sale: Sale) -> Sale:
        return self._commit("sales", sale.sale_id, lambda: self.memory.save_sale(sale))

    def delete_sale(self, sale_id: str) -> None:
        self._commit("sales", sale_id, lambda: self.memory.delete_sale(sale_id))

    def save_expense(self, expense: Expense) -> Expense:
        return self._commit(
            "expenses", expense.expense_id, lambda: self.memory.save_expense(expense)
        )

    def delete_expense(self, expense_id: str) -> None:
        self._commit("expenses", expense_id, lambda: self.memory.delete_expense(expense_id))

    def summary(self) -> dict[str, int]:
        return self.memory.summary()
