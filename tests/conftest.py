import pytest

from ast_builder import AstBuilder


@pytest.fixture
def builder() -> AstBuilder:
    return AstBuilder()


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    home = tmp_path / "xdg_config"
    home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    return home
