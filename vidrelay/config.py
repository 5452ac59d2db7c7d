import os
from dataclasses import dataclass
from typing import Optional

UPSTREAM_YTDLP = "ytdlp"
UPSTREAM_COBALT = "cobalt"
UPSTREAMS = (UPSTREAM_YTDLP, UPSTREAM_COBALT)

POLICY_FALLBACK = "fallback"
POLICY_ERROR = "error"
FAILURE_POLICIES = (POLICY_FALLBACK, POLICY_ERROR)

# What each upstream has always done when it is unreachable
DEFAULT_FAILURE_POLICY = {
    UPSTREAM_YTDLP: POLICY_FALLBACK,
    UPSTREAM_COBALT: POLICY_ERROR,
}

DEFAULT_YTDLP_SERVER_URL = "http://localhost:3000"
DEFAULT_COBALT_API_URL = "https://api.cobalt.tools/"


@dataclass
class Settings:
    upstream: str = UPSTREAM_YTDLP
    ytdlp_server_url: str = DEFAULT_YTDLP_SERVER_URL
    cobalt_api_url: str = DEFAULT_COBALT_API_URL
    failure_policy: Optional[str] = None
    upstream_timeout: Optional[float] = None
    log_level: str = "INFO"
    port: int = 5000

    def __post_init__(self):
        self.upstream = self.upstream.strip().lower()
        if self.upstream not in UPSTREAMS:
            raise ValueError(f"Unknown upstream {self.upstream!r}, expected one of {UPSTREAMS}")
        if self.failure_policy is None:
            self.failure_policy = DEFAULT_FAILURE_POLICY[self.upstream]
        self.failure_policy = self.failure_policy.strip().lower()
        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(
                f"Unknown failure policy {self.failure_policy!r}, expected one of {FAILURE_POLICIES}"
            )

    @property
    def falls_back(self):
        return self.failure_policy == POLICY_FALLBACK

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        timeout = env.get("UPSTREAM_TIMEOUT", "").strip()
        return cls(
            upstream=env.get("UPSTREAM", UPSTREAM_YTDLP),
            ytdlp_server_url=env.get("YTDLP_SERVER_URL", DEFAULT_YTDLP_SERVER_URL),
            cobalt_api_url=env.get("COBALT_API_URL", DEFAULT_COBALT_API_URL),
            failure_policy=env.get("UPSTREAM_FAILURE_POLICY") or None,
            upstream_timeout=float(timeout) if timeout else None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            port=int(env.get("PORT", "5000")),
        )
