"""
Engine configuration

Settings are read from the environment once, when the service container is
first used:
- DATA_API_URL / DATA_API_TOKEN / DATA_API_TIMEOUT_SECS: accounting-data service
- ACCOUNT_DEFAULTS_TTL_SECS: how long resolved account defaults are cached
- REVENUE_ACCOUNT_POLICY: "fallback" or "require" for invoice lines without a
  revenue account
- VOID_MARKS_ORIGINAL_ENTRY / RECORD_REVERSING_ENTRY_ID: reversal write-back
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class RevenueAccountPolicy(str, Enum):
    """What to do with an invoice line that has no revenue account."""
    FALLBACK = "fallback"  # credit the DefaultRevenue account
    REQUIRE = "require"    # reject the posting


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineSettings:
    data_api_url: str = "http://localhost:5000/api"
    data_api_token: Optional[str] = None
    data_api_timeout_secs: float = 10.0
    account_defaults_ttl_secs: float = 60.0
    revenue_account_policy: RevenueAccountPolicy = RevenueAccountPolicy.FALLBACK
    void_marks_original_entry: bool = True
    record_reversing_entry_id: bool = False
    default_acting_user: str = "system"

    def __post_init__(self):
        self.data_api_url = self.data_api_url.rstrip("/")
        if self.account_defaults_ttl_secs < 0:
            raise ValueError("ACCOUNT_DEFAULTS_TTL_SECS must be >= 0")
        if self.data_api_timeout_secs <= 0:
            raise ValueError("DATA_API_TIMEOUT_SECS must be > 0")

    @classmethod
    def from_env(cls) -> "EngineSettings":
        policy_raw = os.getenv("REVENUE_ACCOUNT_POLICY", RevenueAccountPolicy.FALLBACK.value).strip().lower()
        try:
            policy = RevenueAccountPolicy(policy_raw)
        except ValueError:
            logger.warning(f"Unknown REVENUE_ACCOUNT_POLICY '{policy_raw}', using fallback")
            policy = RevenueAccountPolicy.FALLBACK

        return cls(
            data_api_url=os.getenv("DATA_API_URL", "http://localhost:5000/api"),
            data_api_token=os.getenv("DATA_API_TOKEN") or None,
            data_api_timeout_secs=float(os.getenv("DATA_API_TIMEOUT_SECS", "10")),
            account_defaults_ttl_secs=float(os.getenv("ACCOUNT_DEFAULTS_TTL_SECS", "60")),
            revenue_account_policy=policy,
            void_marks_original_entry=_env_bool("VOID_MARKS_ORIGINAL_ENTRY", True),
            record_reversing_entry_id=_env_bool("RECORD_REVERSING_ENTRY_ID", False),
            default_acting_user=os.getenv("DEFAULT_ACTING_USER", "system"),
        )
