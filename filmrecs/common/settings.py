import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_REVIEWS_API_URL = "http://credentials-api.generalassemb.ly/4576f55f-c427-4cfc-a11c-5bfe914ca6c1"


@dataclass(frozen=True)
class Settings:
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))
    app_env: str = os.getenv("APP_ENV", os.getenv("NODE_ENV", "development"))
    db_path: str = os.getenv("DB_PATH", "./db/database.db")
    reviews_api_url: str = os.getenv("REVIEWS_API_URL", DEFAULT_REVIEWS_API_URL)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    sentry_dsn: str = os.getenv("SENTRY_DSN", "")
    sentry_traces_sample_rate: float = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() == "development"

    @property
    def database_url(self) -> str:
        return f"sqlite:///file:{self.db_path}?mode=ro&uri=true"


settings = Settings()
