import pytest

from ruleset_reconcile.utils import config
from ruleset_reconcile.utils.config import ConfigNotFound
from ruleset_reconcile.utils.runtime.environment import init_env, log_fmt


def test_log_fmt_no_args() -> None:
    fmt = log_fmt()
    assert "DRY-RUN" not in fmt


def test_log_fmt_dry_run_true() -> None:
    fmt = log_fmt(dry_run=True)
    assert "DRY-RUN" in fmt


def test_log_fmt_dry_run_false() -> None:
    fmt = log_fmt(dry_run=False)
    assert "DRY-RUN" not in fmt


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("RULESET_RECONCILE_CONFIG", raising=False)
    monkeypatch.delenv("RULESET_RECONCILE_LOG_LEVEL", raising=False)
    yield monkeypatch
    config.init({})


def test_init_env_without_config_file(clean_env) -> None:
    config.init({"github": {"token": "stale"}})

    init_env()

    assert config.get_config() == {}


def test_init_env_with_config_file(clean_env, tmp_path) -> None:
    configfile = tmp_path / "config.toml"
    configfile.write_text('[github]\ntoken = "ghp_token"\nowner = "acme"\n')

    init_env(log_level="DEBUG", config_file=str(configfile))

    assert config.github_token() == "ghp_token"
    assert config.github_owner() == "acme"


def test_init_env_missing_config_file(clean_env, tmp_path) -> None:
    with pytest.raises(ConfigNotFound):
        init_env(config_file=str(tmp_path / "missing.toml"))
