"""Tests for the cost and margin engine."""

import math

import pytest

from crewtech.schemas.costing import CostParams, MarginConfig
from crewtech.schemas.mission_order import Contract, MarginType, SalaryType
from crewtech.services.costing import calculate, ensure_positive, fees_for_contract, parse_days
from crewtech.services.errors import ValidationError


def _auto(**kw):
    params = {
        "aircraft_registration": "F-HDEF",
        "position": "Captain",
        "duration_days": 3,
        "payment_mode": "daily",
        "per_diem_enabled": True,
    }
    params.update(kw)
    return params


def _manual(rates, **kw):
    params = {"manual_mode": True, "manual_rates": rates, "duration_days": 4, "payment_mode": "daily"}
    params.update(kw)
    return params


class TestSanitizers:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 0),
            ("", 0),
            ("abc", 0),
            (-5, 0),
            ("-5", 0),
            (float("nan"), 0),
            (float("inf"), 0),
            (True, 0),
            ("  12.5 ", 12.5),
            (40, 40),
        ],
    )
    def test_ensure_positive(self, value, expected):
        assert ensure_positive(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, 3), ("3", 3), ("2.0", 2), (36500, 36500), (0, None), (-1, None), ("x", None),
            (None, None), (True, None), (36501, None), (10**400, None), ("1e400", None),
        ],
    )
    def test_parse_days(self, value, expected):
        assert parse_days(value) == expected


class TestAutomaticMode:
    def test_captain_three_days_with_per_diem_and_margin(self):
        result = calculate(_auto(margin={"enabled": True, "type": "percentage", "value": 20}))

        assert result.daily_salary == pytest.approx(850)
        assert result.total_salary == pytest.approx(2550)
        assert result.daily_per_diem == pytest.approx(120)
        assert result.total_per_diem == pytest.approx(360)
        assert result.total_cost == pytest.approx(2910)
        assert result.margin_amount == pytest.approx(582)
        assert result.total_with_margin == pytest.approx(3492)
        assert result.is_manual is False
        assert result.payment_mode == SalaryType.DAILY

    def test_accepts_cost_params_model(self):
        result = calculate(CostParams(**_auto()))
        assert result.total_cost == pytest.approx(2910)

    def test_position_lookup_is_case_insensitive(self):
        assert calculate(_auto(position="first_officer")).daily_salary == pytest.approx(650)

    def test_monthly_is_prorated_over_thirty_days(self):
        result = calculate(_auto(payment_mode="monthly", duration_days=10, per_diem_enabled=False))
        assert result.daily_salary == pytest.approx(18500 / 30)
        assert result.total_salary == pytest.approx(18500 / 30 * 10)
        assert result.total_per_diem == 0

    def test_lump_sum_uses_daily_scale_and_no_per_diem(self):
        result = calculate(_auto(payment_mode="lump_sum", duration_days=2))
        assert result.total_salary == pytest.approx(1700)
        assert result.daily_salary == pytest.approx(850)
        assert result.daily_per_diem == 0
        assert result.total_per_diem == 0

    def test_unknown_aircraft_cannot_be_priced(self):
        assert calculate(_auto(aircraft_registration="ZZ-NOPE")) is None

    def test_unknown_position_cannot_be_priced(self):
        assert calculate(_auto(position="Loadmaster")) is None

    @pytest.mark.parametrize("days", [0, -2, "abc", None, 36501, 10**400])
    def test_unusable_duration_returns_none(self, days):
        assert calculate(_auto(duration_days=days)) is None

    def test_malformed_params_return_none(self):
        assert calculate(_auto(payment_mode="weekly")) is None


class TestManualMode:
    def test_daily_rates_from_form_text(self):
        result = calculate(_manual({"daily_salary": "500", "daily_per_diem": "50"}, per_diem_enabled=True))
        assert result.total_salary == pytest.approx(2000)
        assert result.total_per_diem == pytest.approx(200)
        assert result.total_cost == pytest.approx(2200)
        assert result.is_manual is True

    def test_negative_and_garbage_figures_become_zero(self):
        result = calculate(_manual({"daily_salary": "-100", "daily_per_diem": "lots"}, per_diem_enabled=True))
        assert result.total_cost == 0
        assert result.total_with_margin == 0

    def test_nan_rate_becomes_zero(self):
        result = calculate(_manual({"daily_salary": float("nan")}))
        assert result.daily_salary == 0
        assert not math.isnan(result.total_cost)

    def test_overflowing_totals_cannot_be_priced(self):
        assert calculate(_manual({"daily_salary": 1e308}, duration_days=10)) is None
        assert calculate(_manual({"daily_salary": 1e308}, duration_days=1)).total_cost == 1e308

    def test_per_diem_ignored_when_disabled(self):
        result = calculate(_manual({"daily_salary": 100, "daily_per_diem": 40}, per_diem_enabled=False))
        assert result.total_per_diem == 0

    def test_monthly(self):
        result = calculate(_manual({"monthly_salary": 18000}, payment_mode="monthly", duration_days=10))
        assert result.daily_salary == pytest.approx(600)
        assert result.total_salary == pytest.approx(6000)

    @pytest.mark.parametrize("days", [1, 5, 30])
    def test_lump_sum_total_does_not_depend_on_duration(self, days):
        result = calculate(
            _manual({"lump_sum": 5000, "daily_per_diem": 80}, payment_mode="lump_sum",
                    duration_days=days, per_diem_enabled=True)
        )
        assert result.total_salary == pytest.approx(5000)
        assert result.daily_salary == pytest.approx(5000 / days)
        assert result.total_per_diem == 0


class TestMargin:
    def _cost(self, margin):
        return calculate(_manual({"daily_salary": 250}, duration_days=4, margin=margin))

    def test_percentage_is_capped_at_one_hundred(self):
        result = self._cost({"type": "percentage", "value": 250})
        assert result.margin_amount == pytest.approx(1000)
        assert result.total_with_margin == pytest.approx(2000)

    def test_fixed_amount_is_added_verbatim(self):
        result = self._cost({"type": "fixed", "value": "300"})
        assert result.margin_amount == pytest.approx(300)
        assert result.total_with_margin == pytest.approx(1300)

    def test_disabled_margin_adds_nothing(self):
        result = self._cost({"enabled": False, "type": "fixed", "value": 300})
        assert result.margin_amount == 0
        assert result.total_with_margin == pytest.approx(1000)

    def test_garbage_margin_value_adds_nothing(self):
        assert self._cost({"type": "percentage", "value": "twenty"}).margin_amount == 0


class TestFeesForContract:
    def _contract(self, **kw):
        data = dict(
            start_date="2026-03-01",
            end_date="2026-03-03",
            salary_amount=850,
            salary_type="daily",
            has_per_diem=True,
            per_diem_amount=120,
        )
        data.update(kw)
        return Contract(**data)

    def test_inclusive_duration_and_margin(self):
        fees = fees_for_contract(
            self._contract(), MarginConfig(type=MarginType.PERCENTAGE, value=20), "CHF"
        )
        assert fees.duration_days == 3
        assert fees.total_cost == pytest.approx(2910)
        assert fees.total_with_margin == pytest.approx(3492)
        assert fees.margin_type == MarginType.PERCENTAGE
        assert fees.margin_value == 20
        assert fees.currency == "CHF"

    def test_without_margin_uses_contract_currency(self):
        fees = fees_for_contract(self._contract(salary_currency="USD"))
        assert fees.margin_type is None
        assert fees.margin_amount == 0
        assert fees.currency == "USD"

    def test_lump_sum_contract(self):
        fees = fees_for_contract(self._contract(salary_type="lump_sum", salary_amount=4000))
        assert fees.total_salary == pytest.approx(4000)
        assert fees.total_per_diem == 0

    def test_contract_too_large_to_price(self):
        with pytest.raises(ValidationError) as exc:
            fees_for_contract(self._contract(salary_amount=1e308))
        assert exc.value.status_code == 400
        assert exc.value.fields[0].startswith("contract:")
