import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point the preference file at a temporary location."""
    from mdtoolbar.app import config

    path = tmp_path / ".mdtoolbar_config.json"
    monkeypatch.setattr(config, "GLOBAL_CONFIG", path)
    return path
