"""Application configuration."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class RegistryApiConfig:
    """Registry / bulk-load backend configuration."""

    base_url: str = "http://localhost:3005/api"
    api_key: str = ""  # Read from .env or user input
    timeout: int = 60
    batch_size: int = 500

    @classmethod
    def from_env(cls) -> "RegistryApiConfig":
        """Load config from environment variables."""
        return cls(
            base_url=os.getenv("MAPSYNC_API_URL", "http://localhost:3005/api"),
            api_key=os.getenv("MAPSYNC_API_KEY", ""),
            timeout=int(os.getenv("MAPSYNC_API_TIMEOUT", "60")),
            batch_size=int(os.getenv("MAPSYNC_BATCH_SIZE", "500")),
        )


@dataclass
class GenAIConfig:
    """AI-assisted matcher configuration."""

    api_key: str = ""
    model: str = "gemini-2.5-flash"
    min_confidence: float = 0.0

    @property
    def use_real_genai(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GenAIConfig":
        """Load config from environment variables."""
        return cls(
            api_key=os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", "")),
            model=os.getenv("MAPSYNC_GENAI_MODEL", "gemini-2.5-flash"),
            min_confidence=float(os.getenv("MAPSYNC_MIN_CONFIDENCE", "0.0")),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    data_dir: str = "./data"
    output_dir: str = "./output"
    registry_file: str = "./config/registries.json"
    catalog_file: Optional[str] = None
    preview_limit: int = 8
    replace_mode: str = "literal"
    registry_api: RegistryApiConfig = None
    genai: GenAIConfig = None

    def __post_init__(self):
        """Initialize default values."""
        if self.registry_api is None:
            self.registry_api = RegistryApiConfig.from_env()
        if self.genai is None:
            self.genai = GenAIConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            data_dir=os.getenv("MAPSYNC_DATA_DIR", "./data"),
            output_dir=os.getenv("MAPSYNC_OUTPUT_DIR", "./output"),
            registry_file=os.getenv("MAPSYNC_REGISTRY_FILE", "./config/registries.json"),
            catalog_file=os.getenv("MAPSYNC_CATALOG_FILE") or None,
            preview_limit=int(os.getenv("MAPSYNC_PREVIEW_LIMIT", "8")),
            replace_mode=os.getenv("MAPSYNC_REPLACE_MODE", "literal"),
            registry_api=RegistryApiConfig.from_env(),
            genai=GenAIConfig.from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
