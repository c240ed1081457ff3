import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Catalog service
    catalog_base_url: str = os.getenv("CATALOG_BASE_URL", "http://127.0.0.1:8000")
    catalog_timeout: float = float(os.getenv("CATALOG_TIMEOUT", "10"))
    catalog_connect_timeout: float = float(os.getenv("CATALOG_CONNECT_TIMEOUT", "5"))
    catalog_max_connections: int = int(os.getenv("CATALOG_MAX_CONNECTIONS", "20"))

    # Sandbox server
    sandbox_host: str = os.getenv("SANDBOX_HOST", "127.0.0.1")
    sandbox_port: int = int(os.getenv("SANDBOX_PORT", "8000"))
    sandbox_seed: bool = _flag("SANDBOX_SEED", "True")

    # Console
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    output_mode: str = os.getenv("LIBRARY_ADMIN_OUTPUT", "plain").lower()
    confirm_destructive: bool = _flag("CONFIRM_DESTRUCTIVE", "True")

    # Application
    app_name: str = os.getenv("APP_NAME", "Library Admin Console")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _flag("DEBUG", "False")


settings = Settings()
