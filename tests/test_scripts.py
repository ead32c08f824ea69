"""Tests for the launcher scripts' command construction."""
import importlib.util
from pathlib import Path

import pytest

SCRIPTS = Path(__file__).resolve().parent.parent / "scripts"


@pytest.fixture(scope="module")
def run_app():
    spec = importlib.util.spec_from_file_location("run_app", SCRIPTS / "run_app.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_ui_path_points_at_streamlit_page(run_app):
    assert run_app.UI_PATH.exists()


def test_default_command(run_app):
    cmd, env = run_app.build_command(run_app.parse_args([]))
    assert cmd[1:4] == ["-m", "streamlit", "run"]
    assert cmd[cmd.index("--server.port") + 1] == "8501"
    assert "--server.headless" not in cmd


def test_options_reach_command_and_environment(run_app, tmp_path):
    args = run_app.parse_args([
        "--port", "9000", "--catalog-root", str(tmp_path), "--tenant", "acme", "--headless",
    ])
    cmd, env = run_app.build_command(args)
    assert cmd[cmd.index("--server.port") + 1] == "9000"
    assert cmd[-2:] == ["--server.headless", "true"]
    assert env["FIELD_QUOTE_CATALOG_ROOT"] == str(tmp_path.resolve())
    assert env["FIELD_QUOTE_DEFAULT_TENANT"] == "acme"
