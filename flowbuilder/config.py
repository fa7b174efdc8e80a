"""Flow Builder configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class EditorSettings(BaseSettings):
    environment: str = "development"
    app_title: str = "Flow Builder Editor"
    api_base_url: str = "http://localhost:8000"
    api_token: str = ""
    workspace_id: str = ""
    request_timeout_seconds: float = 30.0
    resource_page_size: int = 50
    resource_max_pages: int = 20
    snapshot_path: str = "~/.flowbuilder/workflows.json"
    collapse_depth: int = 2
    zoom_sensitivity: float = 0.001
    log_level: str = "INFO"

    model_config = {"env_prefix": "FB_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def snapshot_file(self) -> Path:
        return Path(self.snapshot_path).expanduser()

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = EditorSettings()
