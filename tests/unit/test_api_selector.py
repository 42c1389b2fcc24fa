from __future__ import annotations

import pytest

from api.main import create_app
from tests.unit._api_test_client import make_client


def _bars(n=40):
    return [{"timestamp": 1_700_000_000 + i * 86400, "close": 140 + (i % 7) * 3} for i in range(n)]


@pytest.mark.anyio
async def test_current_strategy_before_any_evaluation(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        r = await ac.get("/api/v1/selector/current-strategy/btc")
        assert r.status_code == 404
        err = r.json()["error"]
        assert err["code"] == "selector.no_selection"
        assert err["symbol"] == "BTC"


@pytest.mark.anyio
async def test_evaluate_then_read_selection(test_config):
    app = create_app(test_config)
    body = {"symbol": "btc", "bars": _bars(), "options": {"evaluationLookbackPeriod": 10}}

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/evaluate", json=body)
        assert r.status_code == 200
        data = r.json()
        assert data["symbol"] == "BTC"
        assert data["index"] == 39
        assert data["signal"]["action"] in {"BUY", "SELL", "HOLD"}
        assert data["decision"]["evaluation_metric"] == "pnl"
        chosen = data["state"]["chosen_strategy_id"]
        assert chosen is not None
        assert chosen != "meta-selector"
        assert chosen in data["decision"]["candidates"]

        r2 = await ac.get("/api/v1/selector/current-strategy/BTC")
        assert r2.status_code == 200
        state = r2.json()
        assert state["chosen_strategy_id"] == chosen
        assert state["message"] == f"Currently using {state['chosen_strategy_name']} (ID: {chosen}) for BTC."


@pytest.mark.anyio
async def test_evaluate_with_short_history_holds(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/evaluate", json={"symbol": "eth", "bars": _bars(5)})
        assert r.status_code == 200
        data = r.json()
        assert data["signal"]["action"] == "HOLD"
        assert data["decision"] is None
        assert data["state"]["chosen_strategy_id"] is None


@pytest.mark.anyio
async def test_evaluate_rejects_bad_options_and_index(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        r = await ac.post(
            "/api/v1/selector/evaluate",
            json={"symbol": "btc", "bars": _bars(), "options": {"evaluationLookbackPeriod": 0}},
        )
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "selector.invalid_options"

        r = await ac.post("/api/v1/selector/evaluate", json={"symbol": "btc", "bars": _bars(), "index": 99})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "selector.invalid_index"


@pytest.mark.anyio
async def test_evaluate_state_carries_simulated_stats(test_config):
    app = create_app(test_config)
    body = {"symbol": "btc", "bars": _bars(), "options": {"evaluationLookbackPeriod": 10}}

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/evaluate", json=body)
        state = r.json()["state"]
        assert state["simulated_pnl"] == state["score"]
        assert state["simulated_win_rate"] is not None
        assert state["simulated_sharpe"] is not None


@pytest.mark.anyio
async def test_suggest_across_symbols(test_config):
    app = create_app(test_config)
    body = {
        "symbols": {"aapl": _bars(), "short": _bars(5)},
        "capital": 10_000,
        "options": {"evaluationLookbackPeriod": 10},
    }

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/suggest", json=body)
        assert r.status_code == 200
        data = r.json()
        assert data["symbol"] == "AAPL"
        assert [c["symbol"] for c in data["choices"]] == ["AAPL"]
        assert data["overall_metric"] == "pnl"
        assert data["recent_price"] == 152.0
        # 20% of 10000 at 152
        assert data["parameters"]["tradeAmount"] == 13.0
        assert data["strategy_id"] != "meta-selector"

        # the suggestion run leaves the per-symbol selection behind
        r2 = await ac.get("/api/v1/selector/current-strategy/AAPL")
        assert r2.status_code == 200
        assert r2.json()["chosen_strategy_id"] == data["strategy_id"]


@pytest.mark.anyio
async def test_suggest_with_nothing_usable(test_config):
    app = create_app(test_config)
    body = {"symbols": {"eth": _bars(5)}, "capital": 500, "risk_percentage": 10, "overall_metric": "sharpe"}

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/suggest", json=body)
        assert r.status_code == 200
        data = r.json()
        assert data["strategy_id"] is None
        assert data["overall_metric"] == "sharpe"
        assert data["choices"] == []


@pytest.mark.anyio
async def test_suggest_rejects_bad_input(test_config):
    app = create_app(test_config)

    async with make_client(app) as ac:
        r = await ac.post("/api/v1/selector/suggest", json={"symbols": {"eth": _bars()}, "capital": 0})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "request.invalid"

        r = await ac.post(
            "/api/v1/selector/suggest",
            json={"symbols": {"eth": _bars()}, "capital": 100, "options": {"evaluationLookbackPeriod": 0}},
        )
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "selector.invalid_options"
