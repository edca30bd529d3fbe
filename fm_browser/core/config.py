import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Provides validated access to the FileMaker Data API connection settings.
    """

    FM_HOST: str = os.getenv("FM_HOST", "")
    FM_DATABASE: str = os.getenv("FM_DATABASE", "")
    FM_USER: str = os.getenv("FM_USER", "")
    FM_PASSWORD: str = os.getenv("FM_PASSWORD", "")
    FM_API_VERSION: str = os.getenv("FM_API_VERSION", "vLatest")
    FM_VERIFY_SSL: bool = _env_flag("FM_VERIFY_SSL", "true")
    FM_TIMEOUT_SECONDS: float = float(os.getenv("FM_TIMEOUT_SECONDS", "30"))
    FM_PROXY_INJECT_AUTH: bool = _env_flag("FM_PROXY_INJECT_AUTH", "false")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    CORS_ALLOWED_ORIGINS_ENV: str = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173")

    @property
    def has_host(self) -> bool:
        return bool(self.FM_HOST.strip())

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "development"

    @property
    def host_url(self) -> str:
        return f"https://{self.FM_HOST.strip().rstrip('/')}"

    @property
    def base_url(self) -> str:
        """Data API root for the configured database, e.g.
        ``https://fm.example.com/fmi/data/vLatest/databases/Sales``.
        """
        return f"{self.host_url}/fmi/data/{self.FM_API_VERSION}/databases/{self.FM_DATABASE}"

    def allowed_origins(self, extra_origins: List[str] | None = None) -> List[str]:
        env_origins = [o.strip() for o in self.CORS_ALLOWED_ORIGINS_ENV.split(",") if o.strip()]
        merged = list(env_origins)
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    def validate(self) -> None:
        if not self.FM_HOST:
            raise ValueError("FM_HOST environment variable is required")
        if not self.FM_DATABASE:
            raise ValueError("FM_DATABASE environment variable is required")
        if not self.FM_USER:
            raise ValueError("FM_USER environment variable is required")
        if not self.FM_PASSWORD:
            raise ValueError("FM_PASSWORD environment variable is required")
