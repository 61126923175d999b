"""Tests for serialization and ledger stores."""

import json
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from installment_ledger.engine.allocation import record_payment
from installment_ledger.exceptions import (
    EntityNotFoundError,
    PersistenceError,
    ReferentialIntegrityError,
)
from installment_ledger.models.ledger import (
    Account,
    AccountType,
    Expense,
    PayoutType,
    SaleStatus,
)
from installment_ledger.store import InMemoryLedgerStore, JsonFileLedgerStore
from installment_ledger.store.serialization import (
    account_from_dict,
    expense_from_dict,
    sale_from_dict,
    serialize_value,
    to_dict,
)


def _expense(expense_id: str = "e1", account_id: str = "acct-main", **kwargs) -> Expense:
    return Expense(
        expense_id=expense_id,
        user_id="user-test-001",
        account_id=account_id,
        title="Rent",
        amount=Decimal("150.50"),
        category="Other",
        expense_date=date(2024, 3, 1),
        **kwargs,
    )


class TestSerialization:
    """Tests for record serialization."""

    def test_serialize_value(self) -> None:
        assert serialize_value(Decimal("10.50")) == "10.50"
        assert serialize_value(AccountType.SHARED) == "SHARED"
        assert serialize_value(date(2024, 1, 31)) == "2024-01-31"
        assert serialize_value([Decimal("1"), {"d": date(2024, 1, 1)}]) == [
            "1",
            {"d": "2024-01-01"},
        ]

    def test_sale_dict_is_json_ready(self, make_sale) -> None:
        sale = record_payment(make_sale(), Decimal("250.25"), date(2024, 2, 1), note="cash")
        data = to_dict(sale)

        json.dumps(data)
        assert data["total_amount"] == "3000"
        assert data["sale_type"] == "INSTALLMENT"
        assert data["payment_plan"][-1]["amount"] == "250.25"
        assert data["payment_plan"][-1]["is_real_payment"] is True

    def test_sale_round_trip_keeps_amounts(self, make_sale) -> None:
        sale = record_payment(make_sale(), Decimal("250.25"), date(2024, 2, 1))
        restored = sale_from_dict(json.loads(json.dumps(to_dict(sale))))

        assert restored == sale
        assert restored.remaining_amount == Decimal("2749.75")

    def test_stored_derived_fields_ignored(self, make_sale) -> None:
        data = to_dict(make_sale())
        data["remaining_amount"] = "0"
        data["status"] = "COMPLETED"

        restored = sale_from_dict(data)
        assert restored.remaining_amount == Decimal("3000")
        assert restored.status == SaleStatus.ACTIVE

    def test_legacy_line_without_flag(self, make_sale) -> None:
        data = to_dict(make_sale())
        data["payment_plan"][0]["is_paid"] = True
        del data["payment_plan"][0]["is_real_payment"]

        restored = sale_from_dict(data)
        assert restored.payment_plan[0].is_real_payment is None
        assert restored.remaining_amount == Decimal("2000")

    def test_account_and_expense(self, shared_account) -> None:
        assert account_from_dict(to_dict(shared_account)) == shared_account

        expense = _expense(payout_type=PayoutType.PROFIT, investor_id="inv-test-001")
        assert expense_from_dict(to_dict(expense)) == expense
        assert expense_from_dict(to_dict(_expense())).payout_type is None


class TestInMemoryLedgerStore:
    """Tests for the in-memory store."""

    def test_fetch_scoped_by_user(self, store, make_sale, user_id: str) -> None:
        store.save_sale(make_sale())
        assert len(store.fetch_all_sales(user_id)) == 1
        assert store.fetch_all_sales("someone-else") == []
        assert len(store.fetch_all_accounts(user_id)) == 3
        assert len(store.fetch_all_investors(user_id)) == 2

    def test_records_are_copied(self, store, make_sale) -> None:
        sale = make_sale()
        store.save_sale(sale)
        sale.payment_plan.clear()

        fetched = store.get_sale(sale.sale_id)
        assert len(fetched.payment_plan) == 3
        fetched.payment_plan.clear()
        assert len(store.get_sale(sale.sale_id).payment_plan) == 3

    def test_sale_needs_account(self, store, make_sale) -> None:
        with pytest.raises(ReferentialIntegrityError, match="Account"):
            store.save_sale(make_sale(account_id="acct-missing"))

    def test_sale_needs_known_customer(self, store, make_sale) -> None:
        with pytest.raises(ReferentialIntegrityError, match="Customer"):
            store.save_sale(make_sale(customer_id="cust-missing"))

    def test_system_and_investor_customers_accepted(self, store, make_sale) -> None:
        store.save_sale(make_sale(sale_id="s1", customer_id="system_income"))
        store.save_sale(make_sale(sale_id="s2", customer_id="inv-test-001"))
        assert store.summary()["sales"] == 2

    def test_investor_account_needs_owner(self, store, user_id: str) -> None:
        orphan = Account(
            account_id="acct-x", user_id=user_id, name="X", account_type=AccountType.INVESTOR
        )
        with pytest.raises(ReferentialIntegrityError, match="no owner"):
            store.save_account(orphan)
        with pytest.raises(ReferentialIntegrityError, match="inv-missing"):
            store.save_account(replace(orphan, owner_id="inv-missing"))

    def test_shared_account_partners_checked(self, store, shared_account) -> None:
        with pytest.raises(ReferentialIntegrityError, match="inv-missing"):
            store.save_account(replace(shared_account, partners=["inv-missing"]))

    def test_expense_references(self, store) -> None:
        store.save_expense(_expense())
        with pytest.raises(ReferentialIntegrityError):
            store.save_expense(_expense("e2", account_id="acct-missing"))
        with pytest.raises(ReferentialIntegrityError):
            store.save_expense(_expense("e3", investor_id="inv-missing"))

    def test_missing_records(self, store) -> None:
        with pytest.raises(EntityNotFoundError):
            store.get_sale("missing")
        with pytest.raises(EntityNotFoundError):
            store.get_investor("missing")
        with pytest.raises(EntityNotFoundError):
            store.delete_sale("missing")
        with pytest.raises(EntityNotFoundError):
            store.delete_expense("missing")

    def test_summary(self) -> None:
        assert InMemoryLedgerStore().summary() == {
            "customers": 0,
            "accounts": 0,
            "investors": 0,
            "sales": 0,
            "expenses": 0,
        }


@pytest.fixture
def json_store(
    tmp_path: Path, customer, investor, partner, main_account, investor_account
) -> JsonFileLedgerStore:
    json_store = JsonFileLedgerStore(tmp_path / "data")
    json_store.save_customer(customer)
    json_store.save_investor(investor)
    json_store.save_investor(partner)
    json_store.save_account(main_account)
    json_store.save_account(investor_account)
    return json_store


class TestJsonFileLedgerStore:
    """Tests for the JSON file store."""

    def test_files_written(self, json_store, make_sale) -> None:
        json_store.save_sale(make_sale())

        with open(json_store.data_dir / "sales.json", encoding="utf-8") as f:
            records = json.load(f)
        assert [r["sale_id"] for r in records] == ["sale-test-001"]
        assert not (json_store.data_dir / "sales.json.tmp").exists()

    def test_reload(self, json_store, make_sale, user_id: str) -> None:
        sale = record_payment(make_sale(), Decimal("1000"), date(2024, 2, 1))
        json_store.save_sale(sale)
        json_store.save_expense(_expense())

        reopened = JsonFileLedgerStore(json_store.data_dir)
        assert reopened.get_sale(sale.sale_id) == sale
        assert reopened.fetch_all_expenses(user_id) == [_expense()]
        assert reopened.summary() == json_store.summary()

    def test_delete(self, json_store, make_sale) -> None:
        json_store.save_sale(make_sale())
        json_store.delete_sale("sale-test-001")

        reopened = JsonFileLedgerStore(json_store.data_dir)
        assert reopened.summary()["sales"] == 0

    def test_referential_checks_apply(self, json_store, make_sale) -> None:
        with pytest.raises(ReferentialIntegrityError):
            json_store.save_sale(make_sale(account_id="acct-missing"))
        assert not (json_store.data_dir / "sales.json").exists()

    def test_failed_write_restores_record(self, json_store, make_sale, monkeypatch) -> None:
        sale = make_sale()
        json_store.save_sale(sale)

        def broken_write(entity_type: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(json_store, "_write", broken_write)

        with pytest.raises(PersistenceError, match="disk full"):
            json_store.save_sale(record_payment(sale, Decimal("500"), date(2024, 2, 1)))
        assert json_store.get_sale(sale.sale_id) == sale

        with pytest.raises(PersistenceError):
            json_store.save_sale(make_sale(sale_id="sale-new"))
        assert json_store.summary()["sales"] == 1

    def test_corrupt_file(self, tmp_path: Path) -> None:
        (tmp_path / "sales.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError, match="sales.json"):
            JsonFileLedgerStore(tmp_path)
