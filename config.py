"""Application settings loaded from the environment (and an optional .env file)."""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    mongodb_uri: Optional[str] = None
    db_name: str = "expense_tracker"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origin: str = "http://localhost:8501"
    environment: str = "production"
    log_level: str = "INFO"
    rate_limit: str = "100/minute"  # empty string disables rate limiting
    max_body_size: int = 16 * 1024
    shutdown_grace_period: int = 10
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 45000

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Reads the settings once; call this at startup, not per request."""
        load_dotenv()  # searches current dir and parents
        defaults = cls()
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI") or None,
            db_name=os.getenv("DB_NAME", defaults.db_name),
            host=os.getenv("HOST", defaults.host),
            port=int(os.getenv("PORT", defaults.port)),
            cors_origin=os.getenv("CORS_ORIGIN", defaults.cors_origin),
            environment=os.getenv("ENVIRONMENT", defaults.environment),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            rate_limit=os.getenv("RATE_LIMIT", defaults.rate_limit),
            max_body_size=int(os.getenv("MAX_BODY_SIZE", defaults.max_body_size)),
            shutdown_grace_period=int(os.getenv("SHUTDOWN_GRACE_PERIOD", defaults.shutdown_grace_period)),
        )
