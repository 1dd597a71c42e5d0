"""Tests for StrEnum values used on the wire and in the CLI."""

from Market_Copilot.models import (
    BackendId,
    BarInterval,
    Instrument,
    ProviderPreference,
    TradeAction,
)


class TestEnums:
    """Enum values are stable strings."""

    def test_instrument_set(self) -> None:
        assert [i.value for i in Instrument] == [
            "EURUSD",
            "GBPUSD",
            "USDJPY",
            "XAUUSD",
            "SPX500",
            "NAS100",
            "GER40",
        ]

    def test_backend_ids(self) -> None:
        assert {b.value for b in BackendId} == {"claude", "deepseek", "local"}

    def test_preferences_extend_backend_ids(self) -> None:
        values = {p.value for p in ProviderPreference}
        assert {b.value for b in BackendId} <= values
        assert {"auto", "both"} <= values

    def test_trade_actions(self) -> None:
        assert str(TradeAction.BUY) == "BUY"
        assert str(TradeAction.WAIT) == "WAIT"

    def test_interval_parsing_from_value(self) -> None:
        assert BarInterval("1H") is BarInterval.H1
        assert BarInterval("15m") is BarInterval.M15
