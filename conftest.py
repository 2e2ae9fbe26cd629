"""Pytest configuration and fixtures for azdsc tests.

CRITICAL: Tests must never reach a real Azure tenant or read the user's
~/.azdsc/config.toml.
"""

import pytest

AZURE_ENV_VARS = (
    "AZURE_TENANT_ID",
    "AZURE_SUBSCRIPTION_ID",
    "AZURE_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
    "AZDSC_RESOURCE_GROUP",
    "AZDSC_AUTOMATION_ACCOUNT",
    "AZDSC_VM_BASE_NAME",
    "AZDSC_VM_COUNT",
    "AZDSC_CONFIGURATION_PATH",
    "AZDSC_POLL_INTERVAL",
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Strip deployment variables inherited from the developer's shell.

    A CI agent that exports AZURE_CLIENT_SECRET would otherwise leak real
    credentials into CLI tests.
    """
    for name in AZURE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point ConfigManager's default file into tmp_path.

    Example:
        def test_something(isolated_config):
            isolated_config.write_text('account_name = "aa"')
    """
    from azdsc.config_manager import ConfigManager

    config_dir = tmp_path / ".azdsc"
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / "config.toml"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_file)
    return config_file

