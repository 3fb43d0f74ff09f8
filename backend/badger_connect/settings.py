"""Settings for the Badger Connect realtime backend."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


def _split_csv(value: Any) -> Tuple[str, ...]:
	if value in (None, ""):
		return ()
	if isinstance(value, str):
		return tuple(part.strip() for part in value.split(",") if part.strip())
	if isinstance(value, (list, tuple, set)):
		return tuple(str(item).strip() for item in value if str(item).strip())
	return ()


class Settings(BaseSettings):
	host: str = _env_field("0.0.0.0", "HOST")
	port: int = _env_field(4000, "PORT")
	cors_allow_origins: Any = _env_field(("http://localhost:5173",), "CLIENT_ORIGIN", "CORS_ALLOW_ORIGINS")
	socket_namespace: str = _env_field("/", "SOCKET_NAMESPACE")

	# Reputation thresholds; reaching either one bans the email for the process lifetime
	report_threshold: int = _env_field(3, "REPORT_THRESHOLD")
	dislike_threshold: int = _env_field(10, "DISLIKE_THRESHOLD")
	reaction_dedup_per_session: bool = _env_field(False, "REACTION_DEDUP_PER_SESSION")

	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
	obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("badger-connect", "SERVICE_NAME")
	git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	@field_validator("cors_allow_origins", mode="before")
	def _split_cors(cls, value):  # type: ignore[override]
		return _split_csv(value)

	@field_validator("obs_log_level", mode="after")
	def _normalise_level(cls, value: str) -> str:  # type: ignore[override]
		return value.upper()

	def is_prod(self) -> bool:
		return self.environment.lower() in ("prod", "production", "live")

	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")


settings = Settings()

