import os
from pydantic import BaseModel


class Settings(BaseModel):
    api_key: str = os.getenv("API_KEY", "change-me")
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # Catalog service holding product and custom design records
    catalog_api_base: str = os.getenv("CATALOG_API_BASE", "http://localhost:5000/api")
    catalog_api_token: str | None = os.getenv("CATALOG_API_TOKEN")
    catalog_timeout_seconds: float = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "15"))

    default_size: str = os.getenv("DEFAULT_SIZE", "M")

    # JWT
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_audience: str | None = os.getenv("JWT_AUDIENCE")
    jwt_issuer: str | None = os.getenv("JWT_ISSUER")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "3600"))

    # Rate limit (token bucket)
    rate_limit_per_min: int = int(os.getenv("RATE_LIMIT_PER_MIN", "60"))
    rate_limit_burst: int = int(os.getenv("RATE_LIMIT_BURST", "30"))


settings = Settings()
