from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="LINKCHECK_", extra="ignore")

    port: int = 8003

    user_agent: str = Field(default="SEO-Master-LinkCheckBot/1.0")

    probe_timeout_ms: int = Field(default=5000, gt=0)
    max_redirects: int = Field(default=5, ge=0)
    concurrency_limit: int = Field(default=10, gt=0)
    retry_fallback: bool = Field(default=True)
    fallback_statuses: list[int] = Field(default_factory=lambda: [405, 501])

    page_timeout_s: float = Field(default=10.0, gt=0)
    block_private_targets: bool = Field(default=True)
    max_links_per_page: int = Field(default=500, gt=0)


settings = Settings()
