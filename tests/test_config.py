"""Tests for goldsignal.config — environment variable loading and validation."""

import pytest

from goldsignal.config import CREDENTIAL_VARS, Config, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure goldsignal env vars are cleared between tests.

    ``setenv`` first so monkeypatch restores the original state even for
    variables that ``load_dotenv`` sets during the test.
    """
    for var in [
        *CREDENTIAL_VARS,
        "MIN_DRAWDOWN_PCT",
        "HISTORICAL_EXCHANGE_RATE",
        "HTTP_TIMEOUT_SECONDS",
        "DATA_DIR",
        "LOG_LEVEL",
    ]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def no_env_file(tmp_path):
    # A non-existent path keeps load_dotenv from reading a real .env
    return str(tmp_path / "nonexistent.env")


class TestLoadConfig:
    def test_defaults(self, no_env_file):
        cfg = load_config(env_path=no_env_file)
        assert cfg.goldapi_key is None
        assert cfg.twelvedata_api_key is None
        assert cfg.metals_dev_key is None
        assert cfg.vnappmob_api_key is None
        assert cfg.min_drawdown_pct == 10.0
        assert cfg.historical_exchange_rate == 25500.0
        assert cfg.http_timeout_seconds == 30.0
        assert cfg.data_dir == "data"
        assert cfg.log_level == "INFO"

    def test_loads_credentials(self, monkeypatch, no_env_file):
        monkeypatch.setenv("GOLDAPI_KEY", "goldapi-abc")
        monkeypatch.setenv("TWELVEDATA_API_KEY", "td-123")
        cfg = load_config(env_path=no_env_file)
        assert cfg.goldapi_key == "goldapi-abc"
        assert cfg.twelvedata_api_key == "td-123"
        assert cfg.metals_dev_key is None

    def test_empty_credential_is_absent(self, monkeypatch, no_env_file):
        monkeypatch.setenv("VNAPPMOB_API_KEY", "")
        cfg = load_config(env_path=no_env_file)
        assert cfg.vnappmob_api_key is None

    def test_numeric_overrides(self, monkeypatch, no_env_file):
        monkeypatch.setenv("MIN_DRAWDOWN_PCT", "15")
        monkeypatch.setenv("HISTORICAL_EXCHANGE_RATE", "24000")
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5.5")
        cfg = load_config(env_path=no_env_file)
        assert cfg.min_drawdown_pct == 15.0
        assert cfg.historical_exchange_rate == 24000.0
        assert cfg.http_timeout_seconds == 5.5

    def test_zero_threshold_allowed(self, monkeypatch, no_env_file):
        monkeypatch.setenv("MIN_DRAWDOWN_PCT", "0")
        assert load_config(env_path=no_env_file).min_drawdown_pct == 0.0

    def test_invalid_number_names_variable(self, monkeypatch, no_env_file):
        monkeypatch.setenv("MIN_DRAWDOWN_PCT", "ten")
        with pytest.raises(ValueError, match="MIN_DRAWDOWN_PCT"):
            load_config(env_path=no_env_file)

    def test_negative_threshold_rejected(self, monkeypatch, no_env_file):
        monkeypatch.setenv("MIN_DRAWDOWN_PCT", "-1")
        with pytest.raises(ValueError, match="MIN_DRAWDOWN_PCT"):
            load_config(env_path=no_env_file)

    def test_zero_rate_rejected(self, monkeypatch, no_env_file):
        monkeypatch.setenv("HISTORICAL_EXCHANGE_RATE", "0")
        with pytest.raises(ValueError, match="HISTORICAL_EXCHANGE_RATE"):
            load_config(env_path=no_env_file)

    def test_zero_timeout_rejected(self, monkeypatch, no_env_file):
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0")
        with pytest.raises(ValueError, match="HTTP_TIMEOUT_SECONDS"):
            load_config(env_path=no_env_file)

    def test_env_file_is_read(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("METALS_DEV_KEY=md-key\nDATA_DIR=/tmp/gold\n")
        cfg = load_config(env_path=str(env_file))
        assert cfg.metals_dev_key == "md-key"
        assert cfg.data_dir == "/tmp/gold"


class TestCredential:
    def test_resolves_by_env_name(self):
        cfg = Config(goldapi_key="k1", metals_dev_key="k2")
        assert cfg.credential("GOLDAPI_KEY") == "k1"
        assert cfg.credential("METALS_DEV_KEY") == "k2"

    def test_none_env_name(self):
        assert Config().credential(None) is None

    def test_missing_credential(self):
        assert Config().credential("TWELVEDATA_API_KEY") is None
