import logging
from unittest.mock import MagicMock

import pytest

from mongo_proxy import config, main


@pytest.fixture(autouse=True)
def no_env_files(monkeypatch):
    monkeypatch.setattr(config, "load_env_files", lambda: None)


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("mongo_proxy")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def uvicorn_run(monkeypatch):
    run = MagicMock()
    monkeypatch.setattr(main.uvicorn, "run", run)
    return run


def test_missing_uri_exits_1_before_listening(monkeypatch, uvicorn_run, capsys):
    monkeypatch.delenv("MONGODB_URI", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main.run()

    assert exc_info.value.code == 1
    uvicorn_run.assert_not_called()
    assert "MONGODB_URI" in capsys.readouterr().err


def test_serves_on_configured_port(monkeypatch, uvicorn_run):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setenv("PORT", "4321")

    with pytest.raises(SystemExit) as exc_info:
        main.run()

    assert exc_info.value.code == 0
    uvicorn_run.assert_called_once()
    app = uvicorn_run.call_args.args[0]
    assert app.state.settings.port == 4321
    assert uvicorn_run.call_args.kwargs["port"] == 4321


def test_interrupt_exits_0(monkeypatch, uvicorn_run):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    uvicorn_run.side_effect = KeyboardInterrupt

    with pytest.raises(SystemExit) as exc_info:
        main.run()

    assert exc_info.value.code == 0


def test_create_app_loads_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setenv("DATABASE", "factory_db")

    app = main.create_app()

    assert app.state.settings.database == "factory_db"
    assert app.state.conn_mgr.db_name == "factory_db"
    assert not app.state.conn_mgr.is_connected
