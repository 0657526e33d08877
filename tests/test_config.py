import textwrap

import pytest

from nagiosxi_client.core.config import ConfigError, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for key in ("NAGIOS_URL", "API_TOKEN", "NAGIOSXI_NAGIOS__URL", "NAGIOSXI_NAGIOS__TOKEN",
                "NAGIOSXI_NAGIOS__VERIFY_TLS"):
        # setenv first so teardown also removes values loaded from .env
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    # keep .env discovery inside the temp dir
    monkeypatch.chdir(tmp_path)


def test_defaults_and_run_id_generated(tmp_path):
    cfg = load_config(files=(), require_credentials=False)
    assert cfg.logging.console_level == "WARNING"
    assert cfg.nagios.verify_tls is True
    rid1 = cfg.run_id
    assert isinstance(rid1, str) and len(rid1) >= 8
    assert rid1 == cfg.run_id


def test_file_then_env_then_cli_precedence(tmp_path, monkeypatch):
    (tmp_path / "nagiosxi.yml").write_text(textwrap.dedent("""
      nagios:
        url: "https://file.example/nagiosxi"
        token: "FILE"
      logging:
        console_level: "ERROR"
    """), encoding="utf-8")
    monkeypatch.setenv("NAGIOSXI_NAGIOS__URL", "https://env.example/nagiosxi")
    monkeypatch.setenv("NAGIOSXI_NAGIOS__VERIFY_TLS", "false")

    cfg = load_config(
        {"nagios": {"url": "https://cli.example/nagiosxi", "token": ""}},
        files=(str(tmp_path / "nagiosxi.yml"),),
    )

    assert cfg.nagios.url == "https://cli.example/nagiosxi"   # CLI wins
    assert cfg.nagios.token == "FILE"                          # empty CLI value ignored
    assert cfg.nagios.verify_tls is False                      # env coerced to bool
    assert cfg.logging.console_level == "ERROR"                # from file


def test_legacy_env_names(monkeypatch):
    monkeypatch.setenv("NAGIOS_URL", "https://legacy.example/nagiosxi")
    monkeypatch.setenv("API_TOKEN", "LEGACY")
    cfg = load_config(files=())
    assert cfg.nagios.url == "https://legacy.example/nagiosxi"
    assert cfg.nagios.token == "LEGACY"


def test_env_interpolation(tmp_path, monkeypatch):
    (tmp_path / "nagiosxi.yml").write_text(textwrap.dedent("""
      nagios:
        url: "https://nagios.example/nagiosxi"
        token: "${MY_NAGIOS_KEY}"
    """), encoding="utf-8")
    monkeypatch.setenv("MY_NAGIOS_KEY", "SECRET_123")
    cfg = load_config(files=(str(tmp_path / "nagiosxi.yml"),))
    assert cfg.nagios.token == "SECRET_123"


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(
        "NAGIOSXI_NAGIOS__URL=https://dotenv.example/nagiosxi\nNAGIOSXI_NAGIOS__TOKEN=DOTENV\n",
        encoding="utf-8",
    )
    cfg = load_config(files=())
    assert cfg.nagios.url == "https://dotenv.example/nagiosxi"
    assert cfg.nagios.token == "DOTENV"


def test_missing_credentials(tmp_path):
    with pytest.raises(ConfigError) as ei:
        load_config(files=())
    msg = str(ei.value)
    assert "nagios.url" in msg and "nagios.token" in msg


def test_yaml_must_be_mapping(tmp_path):
    (tmp_path / "nagiosxi.yml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(files=(str(tmp_path / "nagiosxi.yml"),), require_credentials=False)
