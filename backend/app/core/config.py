from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.calendar import BULGARIAN_DAY_NAMES, DEFAULT_DAY_ALIASES, DayNormalizer
from app.services.timetable_model import EngineConfig, PeriodDefinition


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_PERIODS: list[dict] = [
    {"period": 1, "startTime": "07:30", "endTime": "08:10"},
    {"period": 2, "startTime": "08:20", "endTime": "09:00"},
    {"period": 3, "startTime": "09:10", "endTime": "09:50"},
    {"period": 4, "startTime": "10:10", "endTime": "10:50"},
    {"period": 5, "startTime": "11:00", "endTime": "11:40"},
    {"period": 6, "startTime": "11:50", "endTime": "12:30"},
    {"period": 7, "startTime": "12:40", "endTime": "13:20"},
    {"period": 8, "startTime": "13:30", "endTime": "14:10"},
]


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "School Timetable API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./school_timetable.db"

    school_timezone: str = "Europe/Sofia"
    default_periods: list[dict] = DEFAULT_PERIODS
    day_aliases: dict[str, str] = {name: day.value for name, day in DEFAULT_DAY_ALIASES.items()}
    day_display_names: dict[str, str] = {day.value: name for day, name in BULGARIAN_DAY_NAMES.items()}

    attendance_upsert_attempts: int = 3

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("attendance_upsert_attempts")
    @classmethod
    def validate_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("attendance_upsert_attempts must be at least 1")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


def build_engine_config(settings: Settings) -> EngineConfig:
    days = DayNormalizer(settings.day_aliases, settings.day_display_names)
    periods = tuple(PeriodDefinition.from_dict(item) for item in settings.default_periods)
    return EngineConfig(periods=periods, days=days)


@lru_cache
def get_engine_config() -> EngineConfig:
    return build_engine_config(get_settings())
