"""
Tests for the calculation engine.
"""

import pytest

from fintrak.calculations.parsing import parse_amount, clamp_count
from fintrak.calculations.denominations import (
    CashDenominations,
    DENOMINATION_KEYS,
    calculate_cash_totals,
)
from fintrak.calculations.ledger import (
    RowLedger,
    FinancialRow,
    ensure_default_bank_accounts,
    generate_row_id,
)
from fintrak.calculations.cascade import (
    WeekCascade,
    calculate_week1_balance,
    calculate_week_balance,
)
from fintrak.calculations.inventory import (
    InsufficientStockError,
    SaleLine,
    SET_PROJECTED_PRICE,
    apply_sale,
    calculate_actual_sale_price,
    calculate_batch_economics,
    calculate_unit_cost,
    calculate_units_to_break_even,
    resolve_price_per_unit,
    reverse_sale,
    summarize_sales,
    validate_sale_quantity,
)


class TestParsing:
    """Test defensive number parsing."""

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", [], {}, float("nan"), float("inf"), True])
    def test_unparseable_values_read_as_zero(self, value):
        assert parse_amount(value) == 0.0

    def test_numeric_strings(self):
        assert parse_amount("12.5") == 12.5
        assert parse_amount(" -3 ") == -3.0

    def test_clamp_count_rejects_negatives(self):
        assert clamp_count(-4) == 0.0
        assert clamp_count("7") == 7.0


class TestDenominations:
    """Test cash counting."""

    def test_totals(self):
        cash = CashDenominations(notes_100=1, notes_20=2, coins_2=3, coins_005=2)
        totals = calculate_cash_totals(cash)
        assert totals["notes_total"] == pytest.approx(140.0)
        assert totals["coins_total"] == pytest.approx(6.10)
        assert totals["total_cash"] == pytest.approx(146.10)

    def test_negative_and_garbage_counts_are_zero(self):
        cash = CashDenominations.from_dict({"notes_50": -2, "coins_1": "lots", "notes_5": "3"})
        assert cash.notes_50 == 0
        assert cash.coins_1 == 0
        assert cash.total_cash == pytest.approx(15.0)

    def test_set_count(self):
        cash = CashDenominations()
        assert cash.set_count("notes_10", -1) == 0
        cash.set_count("notes_10", 4)
        assert cash.total_cash == pytest.approx(40.0)

    def test_set_count_unknown_key(self):
        with pytest.raises(KeyError):
            CashDenominations().set_count("notes_1000", 1)

    def test_to_dict_has_every_denomination(self):
        assert set(CashDenominations().to_dict()) == set(DENOMINATION_KEYS)


class TestRowLedger:
    """Test row list operations."""

    def test_generated_ids(self):
        row_id = generate_row_id()
        assert len(row_id) == 9
        assert row_id.isalnum()

    def test_add_uses_default_label(self):
        ledger = RowLedger(default_label="Projected Sales")
        row = ledger.add()
        assert row.label == "Projected Sales"
        assert row.amount == 0

    def test_ids_are_unique(self):
        ledger = RowLedger()
        ids = {ledger.add("x", 1).id for _ in range(50)}
        assert len(ids) == 50

    def test_update_and_sum(self):
        ledger = RowLedger()
        first = ledger.add("Rent", 100)
        ledger.add("Phone", "25.5")
        assert ledger.update(first.id, "amount", "200")
        assert ledger.sum() == pytest.approx(225.5)

    def test_update_unknown_id_is_noop(self):
        ledger = RowLedger()
        ledger.add("Rent", 100)
        before = ledger.to_dicts()
        assert ledger.update("missing", "amount", 5) is False
        assert ledger.to_dicts() == before

    def test_update_rejects_other_fields(self):
        ledger = RowLedger()
        row = ledger.add("Rent", 100)
        with pytest.raises(ValueError):
            ledger.update(row.id, "id", "new")

    def test_remove_is_idempotent(self):
        ledger = RowLedger()
        row = ledger.add("Rent", 100)
        ledger.add("Phone", 20)
        assert ledger.remove(row.id) is True
        assert ledger.remove(row.id) is False
        assert len(ledger) == 1

    def test_garbage_amounts_sum_as_zero(self):
        ledger = RowLedger.from_dicts([
            {"id": "a", "label": "x", "amount": "oops"},
            {"id": "b", "label": "y", "amount": 10},
        ])
        assert ledger.sum() == 10

    def test_row_roundtrip_keeps_id(self):
        row = FinancialRow.from_dict({"id": "abc", "label": "AMP", "amount": "3"})
        assert row.to_dict() == {"id": "abc", "label": "AMP", "amount": 3.0}

    def test_default_bank_accounts(self):
        ledger = RowLedger()
        ledger.add("AMP", 50)
        added = ensure_default_bank_accounts(ledger)
        assert [row.label for row in added] == ["ANZ"]
        assert ensure_default_bank_accounts(ledger) == []


def _cascade_with_weeks(count):
    cascade = WeekCascade()
    while len(cascade.weeks) < count:
        cascade.add_week()
    return cascade


class TestWeekCascade:
    """Test the week-to-week balance chain."""

    def test_week1_balance(self):
        assert calculate_week1_balance(100, 100, 200, 80) == 320
        assert calculate_week_balance(320, 150, 70) == 400

    def test_cascade_week1_and_week2(self):
        cascade = WeekCascade(cash_on_hand=100)
        cascade.bank_accounts.add("AMP", 50)
        cascade.bank_accounts.add("ANZ", 50)
        week1, week2 = cascade.weeks
        week1.income.add(amount=200)
        week1.expenses.add(amount=80)
        week2.income.add(amount=150)
        week2.expenses.add(amount=70)

        results = cascade.calculate()
        assert results[0].starting_balance == 200
        assert results[0].balance == 320
        assert results[1].starting_balance == 320
        assert results[1].balance == 400

    def test_bank_and_cash_only_count_in_week1(self):
        cascade = WeekCascade(cash_on_hand=1000)
        cascade.bank_accounts.add("AMP", 500)
        results = cascade.calculate()
        assert results[1].starting_balance == results[0].balance == 1500
        assert results[1].cash_on_hand is None

    def test_always_two_weeks(self):
        cascade = WeekCascade()
        assert [w.week_number for w in cascade.weeks] == [1, 2]

    def test_default_labels(self):
        cascade = _cascade_with_weeks(3)
        assert cascade.get_week(1).income.add().label == "Expected Sales"
        assert cascade.get_week(1).expenses.add().label == "Rent Payment"
        assert cascade.get_week(3).income.add().label == "Projected Sales"
        assert cascade.get_week(3).expenses.add().label == "Utilities"

    def test_add_week_numbers_contiguously(self):
        cascade = _cascade_with_weeks(5)
        assert [w.week_number for w in cascade.weeks] == [1, 2, 3, 4, 5]
        assert cascade.get_week(5).name == "Week 5"

    def test_remove_week_repoints_following_week(self):
        cascade = _cascade_with_weeks(4)
        cascade.get_week(2).income.add(amount=100)
        cascade.get_week(3).income.add(amount=1000)
        cascade.get_week(4).expenses.add(amount=10)
        old_week4_id = cascade.get_week(4).id

        assert cascade.remove_week(cascade.get_week(3).id) is True

        assert len(cascade.weeks) == 3
        renumbered = cascade.get_week(3)
        assert renumbered.id == old_week4_id
        assert renumbered.name == "Week 3"
        results = cascade.calculate()
        assert results[2].starting_balance == results[1].balance == 100
        assert results[2].balance == 90

    def test_remove_base_weeks_rejected(self):
        cascade = WeekCascade()
        with pytest.raises(ValueError):
            cascade.remove_week(cascade.get_week(1).id)
        with pytest.raises(ValueError):
            cascade.remove_week(cascade.get_week(2).id)

    def test_remove_unknown_week_is_noop(self):
        cascade = _cascade_with_weeks(3)
        assert cascade.remove_week("week-missing") is False
        assert len(cascade.weeks) == 3

    def test_get_week_out_of_range(self):
        with pytest.raises(IndexError):
            WeekCascade().get_week(3)

    def test_empty_bank_ledger_is_kept(self):
        banks = RowLedger()
        cascade = WeekCascade(cash_on_hand=100, bank_accounts=banks)
        banks.add("AMP", 50)

        assert cascade.bank_accounts is banks
        assert cascade.balance_of(1) == 150

    def test_snapshot_skips_entries_that_are_not_objects(self):
        cascade = WeekCascade.from_snapshot({
            "bank_account_rows": [1, "AMP", {"id": "b1", "label": "ANZ", "amount": 40}],
            "week1_income_rows": "not a list",
            "additional_weeks": [1, None, {"id": "week-x", "income_rows": [], "expense_rows": []}],
        })

        assert [row.label for row in cascade.bank_accounts] == ["ANZ"]
        assert len(cascade.get_week(1).income) == 0
        assert [w.id for w in cascade.additional_weeks] == ["week-x"]
        assert cascade.get_week(3).week_number == 3

    def test_snapshot_reassigns_reserved_and_repeated_week_ids(self):
        cascade = WeekCascade.from_snapshot({
            "additional_weeks": [
                {"id": "week-1", "income_rows": [], "expense_rows": []},
                {"id": "week-x", "income_rows": [], "expense_rows": []},
                {"id": "week-x", "income_rows": [], "expense_rows": []},
            ],
        })

        ids = [week.id for week in cascade.weeks]
        assert ids[:2] == ["week-1", "week-2"]
        assert ids[3] == "week-x"
        assert len(set(ids)) == 5

        assert cascade.remove_week("week-x") is True
        assert len(cascade.additional_weeks) == 2
        assert cascade.remove_week(ids[2]) is True
        assert len(cascade.additional_weeks) == 1

    def test_snapshot_roundtrip(self):
        snapshot = {
            "bank_account_rows": [{"id": "b1", "label": "AMP", "amount": 50}],
            "week1_income_rows": [{"id": "i1", "label": "Sales", "amount": 200}],
            "week1_expense_rows": [],
            "week2_income_rows": [],
            "week2_expense_rows": [{"id": "e1", "label": "Rent", "amount": 30}],
            "additional_weeks": [
                {"id": "week-x", "week_number": 9, "name": "Week 9",
                 "income_rows": [], "expense_rows": [{"id": "e2", "label": "Phone", "amount": 20}]},
            ],
        }
        cascade = WeekCascade.from_snapshot(snapshot, cash_on_hand=10)
        assert cascade.balance_of(3) == pytest.approx(210.0)

        stored = cascade.to_snapshot()
        assert stored["additional_weeks"][0]["week_number"] == 3
        assert stored["additional_weeks"][0]["name"] == "Week 3"
        assert stored["week2_expense_rows"] == [{"id": "e1", "label": "Rent", "amount": 30.0}]


class TestInventoryEconomics:
    """Test batch break-even and profit figures."""

    def test_unit_cost(self):
        assert calculate_unit_cost(100, 10) == 10
        assert calculate_unit_cost(100, 0) == 0

    def test_break_even(self):
        assert calculate_units_to_break_even(100, 10, 15) == 20
        assert calculate_units_to_break_even(100, 10, 13) == 34

    def test_break_even_unreachable(self):
        assert calculate_units_to_break_even(100, 10, 10) is None
        assert calculate_units_to_break_even(100, 10, 0) is None

    def test_batch_economics(self):
        economics = calculate_batch_economics(100, 10, 15, 12, 4)
        assert economics.units_to_break_even == 20
        assert economics.break_even_label == "20 units"
        assert economics.projected_profit_per_unit == 5
        assert economics.actual_profit_per_unit == 2
        assert economics.projected_total_profit == 20
        assert economics.actual_total_profit == 8

    def test_batch_economics_without_projection(self):
        economics = calculate_batch_economics(100, 10, 0, 0, 0)
        assert economics.units_to_break_even is None
        assert economics.to_dict()["break_even_label"] == SET_PROJECTED_PRICE


class TestSales:
    """Test stock movements and sale aggregation."""

    def test_apply_and_reverse_sale(self):
        stock, sold = apply_sale(10, 0, 3)
        assert (stock, sold) == (7, 3)
        assert reverse_sale(stock, sold, 3) == (10, 0)

    def test_reverse_sale_never_goes_negative(self):
        assert reverse_sale(5, 1, 3) == (8, 0)

    def test_oversell_rejected(self):
        with pytest.raises(InsufficientStockError) as exc:
            validate_sale_quantity(5, 3)
        assert str(exc.value) == "Cannot sell 5 units. Only 3 units in stock."

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError):
            validate_sale_quantity(0, 3)

    def test_actual_price_ignores_order(self):
        lines = [SaleLine(2, 30), SaleLine(1, 12), SaleLine(3, 60)]
        forward = calculate_actual_sale_price(lines)
        backward = calculate_actual_sale_price(reversed(lines))
        assert forward == pytest.approx(17.0)
        assert backward == pytest.approx(forward)

    def test_actual_price_recomputed_after_removal(self):
        lines = [SaleLine(2, 30), SaleLine(2, 50)]
        assert calculate_actual_sale_price(lines) == pytest.approx(20.0)
        assert calculate_actual_sale_price(lines[:1]) == pytest.approx(15.0)
        assert calculate_actual_sale_price([]) == 0.0

    def test_resolve_price_per_unit(self):
        assert resolve_price_per_unit(None, 45, 3) == 15
        assert resolve_price_per_unit(12, 45, 3) == 12

    def test_summarize_sales(self):
        summary = summarize_sales([SaleLine(2, 30, 30), SaleLine(2, 50, 20)], unit_cost=10)
        assert summary.total_revenue == 80
        assert summary.total_paid == 50
        assert summary.total_owing == 30
        assert summary.total_sold == 4
        assert summary.average_price == 20
        assert summary.profit == 40
        assert summary.profit_margin == pytest.approx(50.0)
