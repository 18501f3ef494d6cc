"""goldsignal — run configuration.

Loads .env variables into a typed config object that is built once per run
and passed explicitly to the orchestrator, adapters and analytics.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_HISTORICAL_EXCHANGE_RATE = 25500.0

# Provider credentials; absence only disables the adapter that needs it.
CREDENTIAL_VARS = (
    "GOLDAPI_KEY",
    "TWELVEDATA_API_KEY",
    "METALS_DEV_KEY",
    "VNAPPMOB_API_KEY",
)


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    goldapi_key: Optional[str] = None
    twelvedata_api_key: Optional[str] = None
    metals_dev_key: Optional[str] = None
    vnappmob_api_key: Optional[str] = None
    min_drawdown_pct: float = 10.0
    historical_exchange_rate: float = DEFAULT_HISTORICAL_EXCHANGE_RATE
    http_timeout_seconds: float = 30.0
    data_dir: str = "data"
    log_level: str = "INFO"

    def credential(self, env_name: Optional[str]) -> Optional[str]:
        """Return the credential configured for *env_name*, or ``None``."""
        if env_name is None:
            return None
        return getattr(self, env_name.lower(), None)


def _float_var(name: str, default: float, *, minimum: float, inclusive: bool) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < minimum or (not inclusive and value == minimum):
        bound = ">=" if inclusive else ">"
        raise ValueError(f"{name} must be {bound} {minimum}, got {value}")
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    No variable is required.  Raises ``ValueError`` naming the variable when a
    numeric setting cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    creds = {
        var.lower(): (os.environ.get(var) or None) for var in CREDENTIAL_VARS
    }

    return Config(
        **creds,
        min_drawdown_pct=_float_var(
            "MIN_DRAWDOWN_PCT", 10.0, minimum=0.0, inclusive=True,
        ),
        historical_exchange_rate=_float_var(
            "HISTORICAL_EXCHANGE_RATE", DEFAULT_HISTORICAL_EXCHANGE_RATE,
            minimum=0.0, inclusive=False,
        ),
        http_timeout_seconds=_float_var(
            "HTTP_TIMEOUT_SECONDS", 30.0, minimum=0.0, inclusive=False,
        ),
        data_dir=os.environ.get("DATA_DIR", "data"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )
