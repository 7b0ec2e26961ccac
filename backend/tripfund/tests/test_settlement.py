"""
Tests for settlement planning and recorded settlements.
"""
import random
from collections import defaultdict
from decimal import Decimal

import pytest

from tripfund.core.exceptions import AuthorizationError, ConflictError
from tripfund.schemas.balance import Balance
from tripfund.schemas.expense import ExpenseCreate, ParticipantShare
from tripfund.services.expense_service import ExpenseService
from tripfund.services.settlement_service import SettlementService, plan_settlement


def _balances(*pairs):
    return [Balance(member_id=i, member_name=f"m{i}", balance=Decimal(str(b))) for i, b in pairs]


def _zero_sum_cents(rng, size, pool=None):
    """Random cent balances summing to zero; drawing from a small pool forces ties."""
    cents = [rng.choice(pool) if pool else rng.randint(-50000, 50000) for _ in range(size - 1)]
    cents.append(-sum(cents))
    return _balances(*((i + 1, Decimal(c) / 100) for i, c in enumerate(cents)))


def _assert_plan_settles(balances):
    plan = plan_settlement(balances)

    incoming = defaultdict(Decimal)
    outgoing = defaultdict(Decimal)
    for transfer in plan.settlements:
        assert transfer.amount > 0
        incoming[transfer.to_member_id] += transfer.amount
        outgoing[transfer.from_member_id] += transfer.amount
    # Creditors are paid what they are owed and debtors pay what they owe
    for b in balances:
        assert b.balance - incoming[b.member_id] + outgoing[b.member_id] == 0
    assert plan.total_transactions == len(plan.settlements) <= len(balances) - 1


@pytest.mark.parametrize("seed", range(40))
def test_random_zero_sum_balances_settle_exactly(seed):
    rng = random.Random(seed)
    _assert_plan_settles(_zero_sum_cents(rng, rng.randint(2, 60)))


@pytest.mark.parametrize("seed", range(20))
def test_tied_balances_settle_exactly(seed):
    rng = random.Random(1000 + seed)
    pool = [-2500, -1000, -1, 0, 1, 1000, 2500]
    _assert_plan_settles(_zero_sum_cents(rng, rng.randint(2, 40), pool))


def test_many_members_settle_exactly():
    rng = random.Random(7)
    _assert_plan_settles(_zero_sum_cents(rng, 500))


def test_two_members_need_one_transfer():
    plan = plan_settlement(_balances((1, "500"), (2, "-500")))

    assert plan.total_transactions == 1
    transfer = plan.settlements[0]
    assert (transfer.from_member_id, transfer.to_member_id) == (2, 1)
    assert transfer.amount == Decimal("500.00")
    assert plan.total_amount == Decimal("500.00")


def test_all_zero_balances_need_no_transfers():
    plan = plan_settlement(_balances((1, "0"), (2, "0.004"), (3, "-0.003")))

    assert plan.settlements == []
    assert plan.total_transactions == 0
    assert plan.total_amount == Decimal("0.00")


def test_plan_zeroes_every_balance():
    balances = _balances((1, "120.50"), (2, "-40.25"), (3, "-30.25"), (4, "-50.00"), (5, "0"))
    plan = plan_settlement(balances)

    remaining = {b.member_id: b.balance for b in balances}
    for t in plan.settlements:
        assert t.amount > 0
        remaining[t.from_member_id] += t.amount
        remaining[t.to_member_id] -= t.amount
    assert all(v == 0 for v in remaining.values())
    # At most N-1 transfers for N members with a non-zero balance
    assert plan.total_transactions <= 3


def test_largest_debtor_pays_largest_creditor_first():
    plan = plan_settlement(_balances((1, "100"), (2, "50"), (3, "-120"), (4, "-30")))

    first = plan.settlements[0]
    assert (first.from_member_id, first.to_member_id, first.amount) == (3, 1, Decimal("100.00"))


def test_equal_magnitudes_prefer_lower_member_id():
    plan = plan_settlement(_balances((7, "10"), (3, "10"), (9, "-10"), (4, "-10")))

    first = plan.settlements[0]
    assert (first.from_member_id, first.to_member_id) == (4, 3)


def test_unbalanced_input_leaves_remainder_unmatched():
    # Money still sitting in the fund pool shows up as an unmatched credit
    plan = plan_settlement(_balances((1, "300"), (2, "-100")))

    assert plan.total_transactions == 1
    assert plan.settlements[0].amount == Decimal("100.00")


@pytest.fixture
def settled_trip(db, factory):
    alice = factory.user("alice")
    bob = factory.user("bob")
    trip = factory.trip(alice)
    admin = factory.admin_member(trip)
    member = factory.member(trip, bob)
    ExpenseService(db).record_expense(trip.id, alice.id, ExpenseCreate(
        amount=Decimal("100.00"),
        payer_member_id=member.id,
        participants=[ParticipantShare(member_id=admin.id), ParticipantShare(member_id=member.id)],
    ))
    return trip, alice, bob, admin, member


def test_plan_for_trip_uses_current_balances(db, settled_trip):
    trip, _, _, admin, member = settled_trip

    plan = SettlementService(db).plan_for_trip(trip.id)

    assert plan.total_transactions == 1
    transfer = plan.settlements[0]
    assert (transfer.from_member_id, transfer.to_member_id) == (admin.id, member.id)
    assert transfer.amount == Decimal("50.00")
    assert transfer.from_name == "alice"


def test_record_plan_replaces_open_records(db, settled_trip):
    trip, alice, _, _, _ = settled_trip
    service = SettlementService(db)

    service.record_plan(trip.id, alice.id)
    records = service.record_plan(trip.id, alice.id)

    assert len(records) == 1
    assert records[0].is_settled is False
    assert len(service.history(trip.id, alice.id)) == 1


def test_record_plan_is_admin_only(db, settled_trip):
    trip, _, bob, _, _ = settled_trip

    with pytest.raises(AuthorizationError):
        SettlementService(db).record_plan(trip.id, bob.id)


def test_party_can_mark_paid_once(db, settled_trip):
    trip, alice, bob, _, _ = settled_trip
    service = SettlementService(db)
    record = service.record_plan(trip.id, alice.id)[0]

    paid = service.mark_paid(record.id, bob.id)
    assert paid.is_settled is True
    assert paid.settled_at is not None

    with pytest.raises(ConflictError):
        service.mark_paid(record.id, alice.id)


def test_outsider_cannot_mark_paid(db, factory, settled_trip):
    trip, alice, _, _, _ = settled_trip
    carol = factory.user("carol")
    factory.member(trip, carol)
    service = SettlementService(db)
    record = service.record_plan(trip.id, alice.id)[0]

    with pytest.raises(AuthorizationError):
        service.mark_paid(record.id, carol.id)
