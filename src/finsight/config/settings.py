"""Application settings loader from YAML configuration."""
import yaml
from pathlib import Path
from dataclasses import dataclass


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str
    app_version: str

    # Logging
    log_level: str
    log_max_file_size_mb: int
    log_backup_count: int

    # Analysis
    recent_months: int
    top_categories_limit: int
    prompt_row_limit: int

    # Chat
    chat_workers: int

    @classmethod
    def load(cls, config_path: Path = None) -> "AppSettings":
        """Load settings from YAML file."""
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        return cls(
            app_name=config["app"]["name"],
            app_version=config["app"]["version"],
            log_level=config["logging"]["level"],
            log_max_file_size_mb=config["logging"]["max_file_size_mb"],
            log_backup_count=config["logging"]["backup_count"],
            recent_months=config["analysis"]["recent_months"],
            top_categories_limit=config["analysis"]["top_categories_limit"],
            prompt_row_limit=config["analysis"]["prompt_row_limit"],
            chat_workers=config["chat"]["workers"]
        )
