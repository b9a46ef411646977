import importlib
import pytest
from app.core import config


@pytest.fixture
def reload_config(monkeypatch):
    yield monkeypatch
    monkeypatch.undo()
    importlib.reload(config)


def test_config_without_secret_key_refuses_to_load(reload_config):
    reload_config.delenv("secret_key", raising=False)

    with pytest.raises(ValueError, match="secret_key"):
        importlib.reload(config)


def test_config_reads_secret_key_from_environment(reload_config):
    reload_config.setenv("secret_key", "from-env")

    importlib.reload(config)

    assert config.SECRET_KEY == "from-env"
