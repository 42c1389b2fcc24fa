from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

import pytest

from arbiter.cli import build_parser, main


def _scaffold_repo(tmp_path: Path) -> Path:
    """Create a minimal repo root layout expected by the CLI."""

    repo_root = tmp_path
    src_root = Path(__file__).resolve().parents[2]

    (repo_root / "config").mkdir(parents=True, exist_ok=True)
    shutil.copy2(src_root / "config" / "default.yaml", repo_root / "config" / "default.yaml")
    return repo_root


def _write_csv(path: Path, n: int = 40) -> Path:
    lines = ["timestamp,close"]
    lines += [f"{1_700_000_000 + i * 86400},{140 + (i % 7) * 3}" for i in range(n)]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_cli_help_includes_subcommands(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main([])
    assert rc == 2
    out = capsys.readouterr().out
    for cmd in ("strategies", "backtest", "select", "suggest", "api"):
        assert cmd in out


def test_cli_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--version"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == "arbiter v1.0.0"


def test_cli_unknown_command_errors() -> None:
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["nope"])

    with pytest.raises(SystemExit):
        main(["nope"])


def test_cli_strategies_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    rc = main(["strategies", "--json"])
    assert rc == 0
    rows = json.loads(capsys.readouterr().out)
    ids = [r["id"] for r in rows]
    assert ids[-1] == "meta-selector"
    macd = next(r for r in rows if r["id"] == "macd-crossover")
    assert "shortPeriod" in macd["optimizable"]
    selector = next(r for r in rows if r["id"] == "meta-selector")
    # evaluationLookbackPeriod 5..200 step 5
    assert selector["grid_size"] == 40
    assert all(r["grid_size"] >= 1 for r in rows)


def test_cli_backtest_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv")

    rc = main(
        [
            "backtest",
            "--csv",
            str(csv),
            "--strategy",
            "simple-threshold",
            "--symbol",
            "aapl",
            "--cash",
            "5000",
            "--param",
            "tradeAmount=2",
            "--json",
        ]
    )
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["symbol"] == "AAPL"
    assert payload["initial_value"] == 5000.0
    assert payload["parameters"]["tradeAmount"] == 2
    assert payload["bars_processed"] == 40


def test_cli_backtest_unknown_strategy(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv")
    rc = main(["backtest", "--csv", str(csv), "--strategy", "nope"])
    assert rc == 2
    assert "nope" in capsys.readouterr().err


def test_cli_backtest_bad_param(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv")
    assert main(["backtest", "--csv", str(csv), "--strategy", "simple-threshold", "--param", "oops"]) == 2


def test_cli_select_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv")

    rc = main(["select", "--csv", str(csv), "--symbol", "btc", "--lookback", "10", "--json"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["signal"]["action"] in {"BUY", "SELL", "HOLD"}
    assert payload["state"]["symbol"] == "BTC"
    assert payload["state"]["metric"] == "pnl"
    assert payload["state"]["chosen_strategy_id"] is not None


def test_cli_select_insufficient_history_holds(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv", n=5)

    rc = main(["select", "--csv", str(csv), "--symbol", "btc", "--json"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["signal"]["action"] == "HOLD"
    assert payload["state"]["chosen_strategy_id"] is None


def test_cli_missing_config_file(tmp_path: Path, capsys) -> None:
    rc = main(["--config", str(tmp_path / "absent.yaml"), "strategies"])
    assert rc == 2
    assert "not found" in capsys.readouterr().err


def test_cli_suggest_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    a = _write_csv(tmp_path / "a.csv")
    b = _write_csv(tmp_path / "b.csv")

    rc = main(
        [
            "suggest",
            "--csv",
            f"aapl={a}",
            "--csv",
            f"msft={b}",
            "--capital",
            "10000",
            "--lookback",
            "10",
            "--json",
        ]
    )
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert [c["symbol"] for c in payload["choices"]] == ["AAPL", "MSFT"]
    # identical series: the first symbol keeps the tie
    assert payload["symbol"] == "AAPL"
    assert payload["overall_metric"] == "pnl"
    assert payload["recent_price"] == 152.0
    # 20% of 10000 at 152
    assert payload["parameters"]["tradeAmount"] == 13.0


def test_cli_suggest_reads_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    (tmp_path / "data").mkdir()
    _write_csv(tmp_path / "data" / "eth.csv")
    _write_csv(tmp_path / "data" / "short.csv", n=5)

    rc = main(["suggest", "--capital", "5000", "--lookback", "10", "--risk", "10", "--json"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert [c["symbol"] for c in payload["choices"]] == ["ETH"]
    assert payload["symbol"] == "ETH"
    # 10% of 5000 at 152
    assert payload["parameters"]["tradeAmount"] == 3.0


def test_cli_suggest_user_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(_scaffold_repo(tmp_path))
    csv = _write_csv(tmp_path / "bars.csv")

    assert main(["suggest", "--csv", f"x={csv}", "--capital", "0"]) == 2
    assert main(["suggest", "--csv", str(csv), "--capital", "100"]) == 2
    assert main(["suggest", "--capital", "100"]) == 2  # empty data_dir
