from __future__ import annotations

import runpy
import sys

import pytest
from typer.testing import CliRunner

import yip
from yip.cli import app


def test_get_version_matches_dunder():
    assert yip.get_version() == yip.__version__


def test_module_main_calls_run(monkeypatch):
    import yip.__main__ as main_mod

    called = {"ok": False}

    def fake_run():
        called["ok"] = True

    monkeypatch.setattr(main_mod, "run", fake_run)
    main_mod.main()
    assert called["ok"] is True


def test_cli_version_flag_prints_version():
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"yip v{yip.__version__}" in result.stdout


def test_python_dash_m_runs_cli(monkeypatch):
    import yip.cli

    calls = []
    monkeypatch.setattr(yip.cli, "run", lambda: calls.append("run"))
    sys.modules.pop("yip.__main__", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("yip.__main__", run_name="__main__")

    assert calls == ["run"]
    assert exc.value.code is None
