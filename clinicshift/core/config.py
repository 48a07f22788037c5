from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ClinicShift"
    environment: str = "dev"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    # local snapshot, rewritten after every mutation
    snapshot_path: str = "data/clinicshift.json"
    persist_snapshot: bool = True

    # "memory" keeps a process-local document store behind the sync outbox
    remote_backend: Literal["none", "memory"] = "none"

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CLINICSHIFT_", extra="ignore"
    )


settings = Settings()
