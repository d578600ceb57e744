"""Strategy simulator tests."""

from __future__ import annotations

import math

import pytest

from exstrat.services.simulation import HoldingSnapshot, InvestedBasis, LedgerEntry, simulate
from tests.conftest import assert_float_equal, pct_target, price_target


def test_single_target_scenario(holding_factory):
    """Sell 40% at +50% on 10 tokens bought at 100, now worth 150."""
    holding = holding_factory(quantity=10, average_price=100, current_price=150)

    result = simulate(holding, [pct_target(1, 50, 40)], invested_basis=InvestedBasis.COST)

    assert result.ledger == (
        LedgerEntry(
            order=1,
            target_price=150.0,
            tokens_sold=4.0,
            amount_collected=600.0,
            remaining_tokens_after=6.0,
        ),
    )
    assert result.total_collected == 600.0
    assert result.remaining_tokens == 6.0
    assert result.remaining_tokens_value == 900.0
    assert result.total_invested == 1000.0
    assert result.total_profit == 500.0
    assert result.return_percentage == 50.0


def test_sell_percentage_applies_to_remaining_quantity(holding_factory):
    """Selling 50% twice leaves a quarter of the position."""
    holding = holding_factory(quantity=100, average_price=10)
    targets = [price_target(1, 20, 50), price_target(2, 40, 50)]

    result = simulate(holding, targets, invested_basis=InvestedBasis.COST)

    assert result.remaining_tokens == 25.0
    assert [entry.tokens_sold for entry in result.ledger] == [50.0, 25.0]
    assert [entry.remaining_tokens_after for entry in result.ledger] == [50.0, 25.0]


def test_target_order_changes_collected_amount(holding_factory):
    holding = holding_factory(quantity=100, average_price=10)
    cheap_first = [price_target(1, 20, 50), price_target(2, 40, 50)]
    expensive_first = [price_target(2, 20, 50), price_target(1, 40, 50)]

    forward = simulate(holding, cheap_first, invested_basis=InvestedBasis.COST)
    reverse = simulate(holding, expensive_first, invested_basis=InvestedBasis.COST)

    assert forward.total_collected == 2000.0
    assert reverse.total_collected == 2500.0
    assert forward.remaining_tokens == reverse.remaining_tokens == 25.0


def test_targets_run_in_order_field_sequence(holding_factory):
    holding = holding_factory(quantity=100, average_price=10)
    targets = [price_target(3, 30, 10), price_target(1, 10, 10), price_target(2, 20, 10)]

    result = simulate(holding, targets, invested_basis=InvestedBasis.COST)

    assert [entry.order for entry in result.ledger] == [1, 2, 3]
    assert [entry.target_price for entry in result.ledger] == [10.0, 20.0, 30.0]


def test_zero_average_price_returns_zero_percent(holding_factory):
    holding = holding_factory(quantity=10, average_price=0, current_price=5)

    result = simulate(holding, [pct_target(1, 100, 50)], invested_basis=InvestedBasis.COST)

    assert result.total_invested == 0.0
    assert result.return_percentage == 0.0
    assert not math.isnan(result.return_percentage)


def test_zero_ledger_investment_returns_zero_percent(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, invested_amount=0)

    result = simulate(holding, [], invested_basis=InvestedBasis.LEDGER)

    assert result.total_invested == 0.0
    assert result.return_percentage == 0.0


def test_empty_strategy_is_mark_to_market(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, current_price=120)

    result = simulate(holding, [], invested_basis=InvestedBasis.COST)

    assert result.ledger == ()
    assert result.total_collected == 0.0
    assert result.remaining_tokens == 10.0
    assert result.total_profit == result.remaining_tokens_value - result.total_invested
    assert result.total_profit == 200.0
    assert result.return_percentage == 20.0


def test_missing_current_price_values_remaining_at_average(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, current_price=None)

    result = simulate(holding, [pct_target(1, 50, 40)], invested_basis=InvestedBasis.COST)

    assert result.remaining_tokens_value == 600.0
    assert result.total_profit == 200.0


def test_remaining_tokens_valued_at_current_not_target_price(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, current_price=80)

    result = simulate(holding, [price_target(1, 500, 50)], invested_basis=InvestedBasis.COST)

    assert result.remaining_tokens_value == 400.0


def test_over_allocated_target_drives_remaining_negative(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, current_price=100)

    result = simulate(holding, [pct_target(1, 50, 150)], invested_basis=InvestedBasis.COST)

    assert result.remaining_tokens == -5.0
    assert result.remaining_tokens_value == -500.0
    assert result.ledger[0].tokens_sold == 15.0


def test_cumulative_percentages_above_hundred_are_not_rejected(holding_factory):
    holding = holding_factory(quantity=10, average_price=100)
    targets = [pct_target(1, 50, 80), pct_target(2, 100, 80)]

    result = simulate(holding, targets, invested_basis=InvestedBasis.COST)

    assert len(result.ledger) == 2
    assert_float_equal(result.remaining_tokens, 0.4)


@pytest.mark.parametrize(
    "basis, expected",
    [(InvestedBasis.COST, 1000.0), (InvestedBasis.LEDGER, 1012.5)],
)
def test_invested_basis_is_chosen_by_caller(holding_factory, basis, expected):
    holding = holding_factory(quantity=10, average_price=100, invested_amount=1012.5)

    result = simulate(holding, [], invested_basis=basis)

    assert result.total_invested == expected


def test_simulation_is_idempotent(holding_factory):
    holding = holding_factory(quantity=3.7, average_price=0.42, current_price=0.5)
    targets = [pct_target(1, 33, 17.5), price_target(2, 1.1, 42), pct_target(3, 250, 60)]

    first = simulate(holding, targets, invested_basis=InvestedBasis.COST)
    second = simulate(holding, targets, invested_basis=InvestedBasis.COST)

    assert first == second
    assert repr(first.to_payload()) == repr(second.to_payload())


def test_simulation_does_not_reorder_caller_list(holding_factory):
    targets = [price_target(2, 20, 10), price_target(1, 10, 10)]

    simulate(holding_factory(), targets, invested_basis=InvestedBasis.COST)

    assert [t.order for t in targets] == [2, 1]


def test_result_payload_uses_wire_names(holding_factory):
    holding = holding_factory(quantity=10, average_price=100, current_price=150)

    payload = simulate(
        holding, [pct_target(1, 50, 40)], invested_basis=InvestedBasis.COST
    ).to_payload()

    assert payload["perTargetLedger"] == [
        {
            "order": 1,
            "targetPrice": 150.0,
            "tokensSold": 4.0,
            "amountCollected": 600.0,
            "remainingTokensAfter": 6.0,
        }
    ]
    assert payload["totalProfit"] == 500.0
    assert payload["returnPercentage"] == 50.0
    assert payload["remainingTokensValue"] == 900.0


def test_holding_from_payload():
    holding = HoldingSnapshot.from_payload(
        {
            "id": "abc",
            "quantity": "2",
            "averagePrice": 50,
            "investedAmount": 101,
            "token": {"symbol": "ETH"},
        }
    )

    assert holding.symbol == "ETH"
    assert holding.current_price is None
    assert holding.effective_price == 50.0
    assert holding.current_value == 100.0
    assert holding.invested(InvestedBasis.LEDGER) == 101.0
    assert holding.invested(InvestedBasis.COST) == 100.0


def test_holding_from_payload_requires_quantity():
    with pytest.raises(ValueError, match="quantity"):
        HoldingSnapshot.from_payload({"id": "abc", "averagePrice": 50})
