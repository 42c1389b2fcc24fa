from __future__ import annotations

from arbiter.backtest.state import NO_SELECTION_MESSAGE, SelectionState, SelectionStore


def test_store_last_write_wins():
    store = SelectionStore()
    store.record("AAPL", "macd-crossover", {"shortPeriod": 8}, score=3.0, metric="pnl")
    store.record("AAPL", "rsi-bollinger", {}, score=5.0, metric="pnl")

    rec = store.get("AAPL")
    assert rec is not None
    assert rec.strategy_id == "rsi-bollinger"
    assert rec.score == 5.0
    assert len(store) == 1


def test_store_symbols_are_independent():
    store = SelectionStore()
    store.record("BTC", "a", {})
    store.record("AAPL", "b", {})
    assert store.symbols() == ["AAPL", "BTC"]
    assert store.get("ETH") is None

    store.clear()
    assert len(store) == 0


def test_store_copies_parameters():
    params = {"x": 1}
    store = SelectionStore()
    store.record("AAPL", "a", params)
    params["x"] = 2
    assert store.get("AAPL").parameters == {"x": 1}  # type: ignore[union-attr]


def test_empty_state():
    s = SelectionState.empty("ETH")
    assert not s.has_selection
    assert s.message == NO_SELECTION_MESSAGE
