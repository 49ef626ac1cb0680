"""Tests for the dashboard state container."""

import json

import pytest
from pydantic import ValidationError

from mnavdash.models import Company
from mnavdash.seed import initial_companies
from mnavdash.snapshot import parse_snapshot, validate_import
from mnavdash.state import DashboardState, sort_rows


def _company(ticker, **fields):
    return Company(id=ticker.lower(), name=f"{ticker} Corp", ticker=ticker, **fields)


def _state(*companies):
    return DashboardState(companies=list(companies))


class TestInitial:
    def test_seed_list(self):
        state = DashboardState.initial()
        assert state.tickers() == [c.ticker for c in initial_companies()]
        assert len(set(state.tickers())) == len(state.tickers())
        assert state.btc_api_status == "idle"

    def test_seed_copies_are_independent(self):
        first = initial_companies()
        first[0].cash = -1
        assert initial_companies()[0].cash != -1


class TestUpdateCompany:
    def test_wire_and_attribute_names(self):
        state = _state(_company("AAA"))
        state.update_company("aaa", "longTermDebt", 5_000)
        state.update_company("aaa", "other_debt", 1_000)

        assert state.companies[0].long_term_debt == 5_000
        assert state.companies[0].other_debt == 1_000

    def test_set_to_none(self):
        state = _state(_company("AAA", cash=10))
        state.update_company("aaa", "cash", None)
        assert state.companies[0].cash is None

    def test_unknown_company(self):
        with pytest.raises(KeyError):
            _state(_company("AAA")).update_company("zzz", "cash", 1)

    def test_id_is_immutable(self):
        with pytest.raises(ValueError):
            _state(_company("AAA")).update_company("aaa", "id", "new")

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            _state(_company("AAA")).update_company("aaa", "mNAV", 1)

    def test_type_checked(self):
        state = _state(_company("AAA"))
        with pytest.raises(TypeError):
            state.update_company("aaa", "cash", "100")
        with pytest.raises(TypeError):
            state.update_company("aaa", "name", 5)

    def test_duplicate_ticker_rejected(self):
        state = _state(_company("AAA"), _company("BBB"))
        with pytest.raises(ValueError):
            state.update_company("bbb", "ticker", "AAA")

    def test_add_company_rejects_non_finite(self):
        """A NaN never gets into the company list, so the table keeps rendering."""
        state = _state(_company("AAA", bitcoin=1))
        with pytest.raises(ValidationError):
            state.add_company(Company(id="x", name="X", ticker="X", bitcoin=float("nan")))

        assert state.tickers() == ["AAA"]
        assert len(state.companies_with_calculations()) == 1

    def test_add_company_duplicate_ticker(self):
        state = _state(_company("AAA"))
        with pytest.raises(ValueError):
            state.add_company(Company(id="other", name="Other", ticker="AAA"))


class TestMarketValues:
    def test_bitcoin_price_sets_status_and_timestamp(self):
        state = _state()
        state.set_bitcoin_price(65_000)

        assert state.bitcoin_price == 65_000
        assert state.btc_api_status == "success"
        assert state.last_btc_update is not None

    def test_manual_stock_price_precedence(self):
        state = _state(_company("AAA"))
        state.set_stock_price("AAA", 10.0)
        state.set_manual_stock_price("AAA", 12.0)
        assert state.effective_stock_price("AAA") == 12.0
        assert state.stock_price_source("AAA") == "manual"

        state.clear_manual_stock_price("AAA")
        assert state.effective_stock_price("AAA") == 10.0
        assert state.stock_price_source("AAA") == "api"

    def test_later_write_wins(self):
        state = _state(_company("AAA"))
        state.set_stock_price("AAA", 10.0)
        state.set_stock_price("AAA", 11.0)
        assert state.effective_stock_price("AAA") == 11.0

    def test_api_shares_clears_error(self):
        state = _state(_company("AAA"))
        state.set_shares_outstanding_error("AAA")
        assert state.shares_source("AAA") == "error"

        state.set_api_shares_outstanding("AAA", 1_000_000)
        assert state.shares_source("AAA") == "api"
        assert "AAA" not in state.shares_outstanding_errors

    def test_error_with_stale_value(self):
        state = _state(_company("AAA"))
        state.set_api_shares_outstanding("AAA", 1_000_000)
        state.set_shares_outstanding_error("AAA")

        assert state.shares_source("AAA") == "error"
        # Last good value is still used
        assert state.effective_shares_outstanding("AAA") == 1_000_000

    def test_manual_shares_beats_error(self):
        state = _state(_company("AAA"))
        state.set_shares_outstanding_error("AAA")
        state.set_manual_shares_outstanding("AAA", 5)
        assert state.shares_source("AAA") == "manual"

    def test_loading_source(self):
        state = _state(_company("AAA"))
        state.set_shares_outstanding_api_status("loading")
        assert state.shares_source("AAA") == "loading"


class TestCompaniesWithCalculations:
    def test_reference_scenario(self):
        state = _state(
            _company(
                "AAA",
                bitcoin=100,
                cash=1_000_000,
                other_assets=500_000,
                long_term_debt=2_000_000,
                other_debt=500_000,
                preferred_stock=100_000,
            )
        )
        state.set_bitcoin_price(65_000)
        state.set_stock_price("AAA", 50)
        state.set_api_shares_outstanding("AAA", 1_000_000)

        row = state.companies_with_calculations()[0]
        assert row.stock_price == 50
        assert row.market_cap == 50_000_000
        assert row.enterprise_value == 51_600_000
        assert row.mnav == pytest.approx(7.938, abs=1e-3)

    def test_share_precedence(self):
        """Manual override, then API value, then the company's own field."""
        state = _state(_company("AAA", common_shares_outstanding=100))
        state.set_stock_price("AAA", 1.0)
        assert state.companies_with_calculations()[0].market_cap == 100

        state.set_api_shares_outstanding("AAA", 200)
        assert state.companies_with_calculations()[0].market_cap == 200

        state.set_manual_shares_outstanding("AAA", 300)
        assert state.companies_with_calculations()[0].market_cap == 300

        # The stored record is untouched
        assert state.companies[0].common_shares_outstanding == 100

    def test_recomputed_on_change(self):
        state = _state(_company("AAA", common_shares_outstanding=10))
        state.set_stock_price("AAA", 1.0)
        assert state.companies_with_calculations()[0].market_cap == 10

        state.update_company("aaa", "commonSharesOutstanding", 20)
        assert state.companies_with_calculations()[0].market_cap == 20

    def test_huge_import_does_not_break_table(self):
        """A 400-digit holding imports fine and only blanks its own BTC metrics."""
        wire = _company("BIG").to_wire() | {"bitcoin": 10**400}
        state = _state()
        state.import_data(parse_snapshot(json.dumps([wire, _company("OK", bitcoin=1).to_wire()])))
        state.set_bitcoin_price(65_000)

        big, ok = state.companies_with_calculations()
        assert big.bitcoin_assets is None
        assert big.mnav is None
        assert ok.bitcoin_assets == 65_000

    def test_no_prices(self):
        row = _state(_company("AAA", bitcoin=10)).companies_with_calculations()[0]
        assert row.stock_price is None
        assert row.mnav is None
        assert row.debt == 0


class TestSorting:
    def _rows(self):
        state = _state(
            _company("BBB", common_shares_outstanding=10, bitcoin=1),
            _company("aaa", common_shares_outstanding=30, bitcoin=1),
            _company("CCC", bitcoin=1),
        )
        state.set_bitcoin_price(100)
        for ticker in ("BBB", "aaa", "CCC"):
            state.set_stock_price(ticker, 1.0)
        return state

    def test_none_last_both_directions(self):
        state = self._rows()
        state.set_sort_config("marketCap", "asc")
        assert [r.ticker for r in state.sorted_companies()] == ["BBB", "aaa", "CCC"]

        state.set_sort_config("marketCap", "desc")
        assert [r.ticker for r in state.sorted_companies()] == ["aaa", "BBB", "CCC"]

    def test_strings_case_insensitive(self):
        state = self._rows()
        state.set_sort_config("ticker", "asc")
        assert [r.ticker for r in state.sorted_companies()] == ["aaa", "BBB", "CCC"]

    def test_no_direction_keeps_order(self):
        state = self._rows()
        state.set_sort_config("marketCap", None)
        assert [r.ticker for r in state.sorted_companies()] == ["BBB", "aaa", "CCC"]

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            self._rows().set_sort_config("bogus", "asc")
        with pytest.raises(ValueError):
            sort_rows([], "bogus", "asc")


class TestImportResetPersist:
    def test_import_replaces_companies_and_merges_overrides(self):
        state = _state(_company("OLD"))
        state.set_manual_stock_price("OLD", 1.0)
        result = validate_import(
            {
                "companies": [_company("NEW").to_wire()],
                "manualStockPrices": {"NEW": 2.0},
            }
        )
        state.import_data(result)

        assert state.tickers() == ["NEW"]
        assert state.manual_stock_prices == {"OLD": 1.0, "NEW": 2.0}
        assert state.manual_shares_outstanding == {}

    def test_import_duplicate_tickers(self):
        wire = _company("DUP").to_wire()
        result = validate_import([wire, wire | {"id": "other"}])
        with pytest.raises(ValueError):
            _state().import_data(result)

    def test_reset(self):
        state = DashboardState.initial()
        state.set_bitcoin_price(65_000)
        state.set_stock_price("MSTR", 300.0)
        state.set_manual_stock_price("MSTR", 310.0)
        state.set_manual_shares_outstanding("MSTR", 1)
        state.set_shares_outstanding_error("MARA")
        state.update_company("mstr", "cash", 1)
        state.set_sort_config("mNAV", "asc")

        state.reset_to_defaults()

        assert state.companies == initial_companies()
        assert state.stock_prices == {}
        assert state.manual_stock_prices == {}
        assert state.manual_shares_outstanding == {}
        assert state.shares_outstanding_errors == {}
        assert state.sort_config.direction is None
        assert state.bitcoin_price == 65_000

    def test_persist_and_restore(self):
        state = _state(_company("AAA", bitcoin=5))
        state.set_manual_stock_price("AAA", 3.0)
        state.set_manual_shares_outstanding("AAA", 7)
        state.set_stock_price("AAA", 99.0)

        restored = DashboardState.restore(state.persisted_view())

        assert restored.companies == state.companies
        assert restored.manual_stock_prices == {"AAA": 3.0}
        assert restored.manual_shares_outstanding == {"AAA": 7}
        # API values are not persisted
        assert restored.stock_prices == {}

    def test_restore_invalid_falls_back_to_seed(self):
        restored = DashboardState.restore({"garbage": True})
        assert restored.companies == initial_companies()
