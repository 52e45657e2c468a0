"""Configuration module for the Gourmet food catalog service.

Loads environment variables from .env file and provides
configuration settings for the graph gateway, cache and server.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Neo4j Database Configuration
    NEO4J_URI: str = os.getenv("NEO4J_URI", "bolt://localhost:7687")
    NEO4J_USER: str = os.getenv("NEO4J_USER", "neo4j")
    NEO4J_PASSWORD: str = os.getenv("NEO4J_PASSWORD", "")
    NEO4J_DATABASE: str | None = os.getenv("NEO4J_DATABASE") or None

    # Every gateway call is bounded by this many seconds
    QUERY_TIMEOUT_SECONDS: float = float(os.getenv("QUERY_TIMEOUT_SECONDS", "10"))

    # Food detail read cache
    CACHE_ENABLED: bool = os.getenv("CACHE_ENABLED", "1") == "1"
    CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", "300"))  # 5 minutes

    # Server Configuration
    APP_ENV: str = os.getenv("APP_ENV", "development")
    APP_DEBUG: bool = os.getenv("APP_DEBUG", "0") == "1"
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Path = Path(os.getenv("LOG_FILE", "gourmet.log"))

    @classmethod
    def validate(cls) -> list[str]:
        """Validate that all required configuration is present.

        Returns:
            List of missing configuration keys.
        """
        missing = []
        if not cls.NEO4J_PASSWORD:
            missing.append("NEO4J_PASSWORD")
        return missing


# Create singleton config instance
config = Config()
