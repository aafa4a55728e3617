# src/core/config.py
"""
Application Settings - Customers API
====================================

Loads environment variables in one central, typed place.
"""

from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Loads .env from the project root
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent.parent / ".env")


class Config(BaseSettings):
    """Centralized application settings"""

    # ═══════════════════════════════════════════════════════════
    # 🌍 ENVIRONMENT
    # ═══════════════════════════════════════════════════════════

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ═══════════════════════════════════════════════════════════
    # 🗄️ DATABASE / STORE
    # ═══════════════════════════════════════════════════════════

    DATABASE_URL: str = "sqlite:///./customers.db"

    # "memory" keeps customers in process, "database" persists them through SQLAlchemy
    CUSTOMERS_STORE: str = "memory"

    # ═══════════════════════════════════════════════════════════
    # 🔁 RESILIENT HTTP (portal -> Customers API)
    # ═══════════════════════════════════════════════════════════

    CUSTOMERS_API_URL: str = "http://localhost:8000"
    RESILIENT_HTTP_RETRY_COUNT: int = 3
    RESILIENT_HTTP_EXCEPTIONS_BEFORE_CIRCUIT_BREAK: int = 2
    RESILIENT_HTTP_CIRCUIT_BREAK_SECONDS: int = 60
    RESILIENT_HTTP_TIMEOUT: float = 30.0

    # ═══════════════════════════════════════════════════════════
    # 🏠 PORTAL
    # ═══════════════════════════════════════════════════════════

    HOME_TITLE: str = "Customers Demo"

    # ═══════════════════════════════════════════════════════════
    # 🌐 CORS
    # ═══════════════════════════════════════════════════════════

    ALLOWED_ORIGINS: str = "http://localhost:3000"

    def get_allowed_origins_list(self) -> list[str]:
        """Returns the list of origins allowed by CORS"""
        origins = [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

        if self.is_development:
            origins.extend([
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ])

        # Drops duplicates, keeps order
        return list(dict.fromkeys(origins))

    # ═══════════════════════════════════════════════════════════
    # 🖥️ SERVER
    # ═══════════════════════════════════════════════════════════

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ═══════════════════════════════════════════════════════════
    # 🔧 HELPERS
    # ═══════════════════════════════════════════════════════════

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT.lower() == "test"

    @property
    def uses_database_store(self) -> bool:
        return self.CUSTOMERS_STORE.lower() == "database"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# ✅ Global instance
config = Config()


def validate_config(settings: Config = config):
    """Validates critical settings"""
    errors = []

    if settings.ENVIRONMENT not in ["development", "test", "production"]:
        errors.append("ENVIRONMENT must be one of: development, test, production")

    if settings.CUSTOMERS_STORE.lower() not in ["memory", "database"]:
        errors.append("CUSTOMERS_STORE must be one of: memory, database")

    if settings.RESILIENT_HTTP_RETRY_COUNT < 0:
        errors.append("RESILIENT_HTTP_RETRY_COUNT cannot be negative")

    if settings.RESILIENT_HTTP_EXCEPTIONS_BEFORE_CIRCUIT_BREAK < 1:
        errors.append("RESILIENT_HTTP_EXCEPTIONS_BEFORE_CIRCUIT_BREAK must be at least 1")

    if settings.RESILIENT_HTTP_CIRCUIT_BREAK_SECONDS <= 0:
        errors.append("RESILIENT_HTTP_CIRCUIT_BREAK_SECONDS must be positive")

    if not settings.CUSTOMERS_API_URL.startswith(("http://", "https://")):
        errors.append("CUSTOMERS_API_URL must be an http(s) URL")

    if errors:
        raise ValueError(
            "❌ Configuration errors:\n" + "\n".join(f"  • {e}" for e in errors)
        )


validate_config()
