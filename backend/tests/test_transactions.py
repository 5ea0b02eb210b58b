import math
import threading
from decimal import Decimal

import pytest

from app.database import SessionLocal
from app.errors import InsufficientFundsError, ValidationError, NotFoundError
from app.models.account import Account
from app.models.identity import Identity
from app.models.transaction import TransactionRecord
from app.services.transaction_service import TransactionService
from app.utils.validators import parse_amount_cents

from conftest import bearer


@pytest.fixture
def funded(client, register_user):
    """A registered user with one empty account: (token, account_id)."""
    token = register_user()
    account = client.post("/api/accounts", json={"kind": "money market fund"}, headers=bearer(token)).json()["account"]
    return token, account["id"]


def transact(client, token, account_id, kind, amount):
    return client.post(
        "/api/transactions",
        json={"account_id": account_id, "kind": kind, "amount": amount},
        headers=bearer(token),
    )


def test_deposit_then_withdraw(client, funded):
    token, account_id = funded

    deposit = transact(client, token, account_id, "deposit", 100.50)
    withdraw = transact(client, token, account_id, "withdraw", 50.25)

    assert deposit.status_code == 201
    assert deposit.json()["balance"] == 100.5
    assert deposit.json()["transaction"]["status"] == "completed"
    assert withdraw.json()["balance"] == 50.25
    assert client.get(f"/api/accounts/{account_id}", headers=bearer(token)).json()["balance_cents"] == 5025


def test_insufficient_funds_leaves_state_untouched(client, funded, db):
    token, account_id = funded
    transact(client, token, account_id, "deposit", 10)

    response = transact(client, token, account_id, "withdraw", 10.01)

    assert response.status_code == 400
    assert response.json()["error_code"] == "insufficient_funds"
    assert db.get(Account, account_id).balance_cents == 1000
    assert db.query(TransactionRecord).count() == 1


def test_withdraw_entire_balance(client, funded):
    token, account_id = funded
    transact(client, token, account_id, "deposit", 42)

    response = transact(client, token, account_id, "withdraw", 42)

    assert response.status_code == 201
    assert response.json()["balance"] == 0


@pytest.mark.parametrize("amount", [0, -5, "10", True, None, "abc", 0.001, [10], 10_000_001, 10**20])
def test_invalid_amounts_rejected(client, funded, db, amount):
    token, account_id = funded

    response = transact(client, token, account_id, "deposit", amount)

    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"
    assert db.query(TransactionRecord).count() == 0


@pytest.mark.parametrize("kind", ["transfer", "Deposit", "", None])
def test_invalid_kind_rejected(client, funded, kind):
    token, account_id = funded

    response = transact(client, token, account_id, kind, 10)

    assert response.status_code == 400


def test_unknown_or_foreign_account(client, funded, register_user):
    token, account_id = funded
    other = register_user(national_id="87654321", phone="0787654321")

    assert transact(client, token, "no-such-account", "deposit", 5).status_code == 404
    assert transact(client, other, account_id, "deposit", 5).status_code == 404


def test_history_newest_first_and_filtered(client, funded):
    token, account_id = funded
    second = client.post("/api/accounts", json={"kind": "stock market"}, headers=bearer(token)).json()["account"]
    transact(client, token, account_id, "deposit", 1)
    transact(client, token, account_id, "deposit", 2)
    transact(client, token, second["id"], "deposit", 3)

    history = client.get("/api/transactions", headers=bearer(token)).json()
    filtered = client.get("/api/transactions", params={"account_id": account_id}, headers=bearer(token)).json()

    assert [t["amount"] for t in history] == [3, 2, 1]
    assert [t["amount"] for t in filtered] == [2, 1]


def test_parse_amount_cents():
    assert parse_amount_cents(10) == 1000
    assert parse_amount_cents(0.1) == 10
    assert parse_amount_cents(Decimal("19.995")) == 2000
    assert parse_amount_cents(math.inf) is None
    assert parse_amount_cents(math.nan) is None
    assert parse_amount_cents(False) is None
    assert parse_amount_cents(0.004) is None
    assert parse_amount_cents(10_000_000) == 1_000_000_000
    assert parse_amount_cents(10_000_000.01) is None
    assert parse_amount_cents(10**20) is None


def _owner_and_account(db):
    identity = db.query(Identity).filter(Identity.national_id == "12345678").one()
    return identity.id


def test_apply_validates_before_touching_state(db, funded):
    _, account_id = funded
    owner_id = _owner_and_account(db)

    with pytest.raises(ValidationError):
        TransactionService.apply(db, owner_id, account_id, "deposit", -1)
    with pytest.raises(NotFoundError):
        TransactionService.apply(db, "someone-else", account_id, "deposit", 1)
    with pytest.raises(InsufficientFundsError):
        TransactionService.apply(db, owner_id, account_id, "withdraw", 1)

    assert db.query(TransactionRecord).count() == 0


def _run_concurrently(count, target):
    barrier = threading.Barrier(count)
    results, errors = [], []

    def worker():
        session = SessionLocal()
        try:
            barrier.wait()
            results.append(target(session))
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


def test_concurrent_deposits_do_not_lose_updates(db, funded):
    _, account_id = funded
    owner_id = _owner_and_account(db)

    results, errors = _run_concurrently(
        8, lambda session: TransactionService.apply(session, owner_id, account_id, "deposit", 5.25),
    )

    assert errors == []
    db.expire_all()
    assert db.get(Account, account_id).balance_cents == 8 * 525
    assert db.query(TransactionRecord).filter(TransactionRecord.account_id == account_id).count() == 8


def test_concurrent_withdrawals_never_overdraw(db, funded):
    _, account_id = funded
    owner_id = _owner_and_account(db)
    TransactionService.apply(db, owner_id, account_id, "deposit", 5)

    results, errors = _run_concurrently(
        8, lambda session: TransactionService.apply(session, owner_id, account_id, "withdraw", 1),
    )

    assert len(results) == 5
    assert len(errors) == 3
    assert all(isinstance(e, InsufficientFundsError) for e in errors)
    db.expire_all()
    assert db.get(Account, account_id).balance_cents == 0
    assert db.query(TransactionRecord).filter(TransactionRecord.kind == "withdraw").count() == 5


def test_deposit_cannot_push_balance_past_cap(client, funded, settings, monkeypatch, db):
    monkeypatch.setattr(settings, "MAX_BALANCE_CENTS", 1000)
    token, account_id = funded

    assert transact(client, token, account_id, "deposit", 6).status_code == 201
    over = transact(client, token, account_id, "deposit", 6)
    exact = transact(client, token, account_id, "deposit", 4)

    assert over.status_code == 400
    assert over.json()["error_code"] == "validation_error"
    assert exact.status_code == 201
    balance = db.get(Account, account_id).balance_cents
    assert balance == 1000
    assert isinstance(balance, int)
    assert db.query(TransactionRecord).count() == 2


def test_account_removed_mid_transaction_is_not_found(db, funded, monkeypatch):
    owner_id = _owner_and_account(db)
    monkeypatch.setattr(TransactionService, "_owned_account_exists", staticmethod(lambda *args: True))

    for kind in ("deposit", "withdraw"):
        with pytest.raises(NotFoundError):
            TransactionService.apply(db, owner_id, "removed-account", kind, 1)

    assert db.query(TransactionRecord).count() == 0
