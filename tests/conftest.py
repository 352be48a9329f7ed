import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    # no on-disk http cache and no sources file from the developer's shell
    monkeypatch.setenv("A2BLOCK_CACHE_DIR", "")
    monkeypatch.delenv("A2BLOCK_SOURCES", raising=False)
