from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

from statusboard.models.service import ServiceTarget

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR.parent / "data"


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "Status Dashboard"
    version: str = "1.0.0"
    debug: bool = False

    # --- probes ---
    # name -> health URL, probed in this order; "local" is the monitor itself
    services: dict[str, str] = {
        "api": "http://localhost:3002/health",
        "web": "http://localhost:3004/health",
        "worker": "http://localhost:3006/health",
        "system": "local",
    }
    probe_timeout: float = 5.0
    poll_interval: float = 30.0  # seconds between background polls

    # --- alert thresholds ---
    memory_critical_ratio: float = 0.95
    memory_warning_ratio: float = 0.90
    cpu_load_ceiling: float = 5.0  # 1-minute load average
    process_count_ceiling: int = 500
    disk_ratio_ceiling: float = 0.90
    rules_file: str = ""  # optional YAML file replacing the default rules

    # --- metrics ---
    disk_path: str = "/"
    # process names checked for liveness (case-insensitive substring match)
    watched_processes: list[str] = []

    # --- history ---
    history_retention: int = 100
    history_file: str = str(DATA_DIR / "history.json")
    report_file: str = ""  # HTML report rewritten after every background poll

    # --- display ---
    display_title: str = "Status Dashboard"
    display_subtitle: str = "Local services and host health"
    display_facts: dict[str, str] = {}
    refresh_seconds: int = 30

    # --- server ---
    host: str = "127.0.0.1"
    port: int = 3005
    cors_origins: list[str] = ["http://localhost:3005"]

    model_config = {"env_file": ".env", "env_prefix": "STATUSBOARD_"}

    @property
    def targets(self) -> list[ServiceTarget]:
        return [ServiceTarget(name=name, url=url) for name, url in self.services.items()]


settings = Settings()
