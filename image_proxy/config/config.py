from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Source allow-list, comma separated; empty allows every host
    allowed_domains: str = ""
    max_width: int = 4000
    max_height: int = 4000

    # Outbound fetch
    fetch_timeout: float = 30.0

    # Redis (response cache); disabled when redis_host is unset
    redis_host: str | None = None
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    cache_namespace: str = "default"
    cache_default_ttl: int = 24 * 60 * 60  # 1 day

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def proxy_config(self) -> "ProxyConfig":
        return ProxyConfig(
            allowed_domains=tuple(self.allowed_domains.split(",")),
            max_width=self.max_width,
            max_height=self.max_height,
        )


@dataclass(frozen=True)
class ProxyConfig:
    """Read-only view of the settings the request pipeline depends on."""

    allowed_domains: tuple[str, ...] = ()
    max_width: int = 4000
    max_height: int = 4000


settings = Settings()
