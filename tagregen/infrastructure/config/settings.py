from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

from tagregen.domain.entities import GenerationConfig
from tagregen.domain.value_objects.backoff import BackoffPolicy


# ──────────────────────────────────────────
# 환경변수 기반 시크릿 설정 (.env)
# ──────────────────────────────────────────
class Settings(BaseSettings):
    openai_api_key: str = ""
    openai_base_url: str = ""

    # Firebase
    firebase_credential_path: str = "firebase-service-account.json"
    firebase_project_id: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# ──────────────────────────────────────────
# YAML 기반 앱 설정 (config/settings.yaml)
# ──────────────────────────────────────────
class RegenerationConfig:
    def __init__(self, data: dict[str, Any]):
        self.batch_size: int = data.get("batch_size", 5)
        self.delay_between_batches: float = data.get("delay_between_batches", 1.0)
        self.max_retries: int = data.get("max_retries", 3)
        self.preview_mode: bool = data.get("preview_mode", False)

    def to_generation_config(self, preview_mode: bool | None = None) -> GenerationConfig:
        """검증된 불변 실행 설정으로 변환. 값이 잘못되면 ValueError."""
        return GenerationConfig(
            batch_size=int(self.batch_size),
            delay_between_batches=float(self.delay_between_batches),
            max_retries=int(self.max_retries),
            preview_mode=self.preview_mode if preview_mode is None else preview_mode,
        )


class BackoffConfig:
    def __init__(self, data: dict[str, Any]):
        self.base_delay: float = data.get("base_delay", 1.0)
        self.max_delay: float = data.get("max_delay", 60.0)

    def to_policy(self) -> BackoffPolicy:
        return BackoffPolicy(base_delay=float(self.base_delay), max_delay=float(self.max_delay))


class TaggingConfig:
    def __init__(self, data: dict[str, Any]):
        self.model: str = data.get("model", "gpt-4o-mini")
        self.temperature: float = data.get("temperature", 0.3)
        self.max_tokens: int = data.get("max_tokens", 200)
        self.stream: bool = data.get("stream", False)
        self.request_timeout: float = data.get("request_timeout", 60.0)
        self.language: str = data.get("language", "English")


class SchedulerConfig:
    def __init__(self, data: dict[str, Any]):
        self.retry_failed_enabled: bool = data.get("retry_failed_enabled", False)
        self.retry_interval_minutes: int = data.get("retry_interval_minutes", 360)


class WebConfig:
    def __init__(self, data: dict[str, Any]):
        self.host: str = data.get("host", "0.0.0.0")
        self.port: int = data.get("port", 8000)


class AppConfig:
    """YAML에서 로드된 전체 앱 설정."""

    def __init__(self, data: dict[str, Any]):
        self.name: str = data.get("app", {}).get("name", "Bookmark Tag Regenerator")
        self.timezone: str = data.get("app", {}).get("timezone", "UTC")

        self.regeneration = RegenerationConfig(data.get("regeneration", {}))
        self.backoff = BackoffConfig(data.get("backoff", {}))
        self.tagging = TaggingConfig(data.get("tagging", {}))
        self.scheduler = SchedulerConfig(data.get("scheduler", {}))
        self.web = WebConfig(data.get("web", {}))


def load_app_config(path: str = "config/settings.yaml") -> AppConfig:
    """YAML 설정 파일을 로드하여 AppConfig를 반환."""
    config_path = Path(path)
    if not config_path.exists():
        return AppConfig({})
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return AppConfig(data)
