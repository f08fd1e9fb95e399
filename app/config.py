from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # ---- API Auth ----
    OPENAI_API_KEY: str

    # ---- Assistant Config ----
    ASSISTANT_NAME: str = "File summarizer"
    ASSISTANT_MODEL: str = "gpt-3.5-turbo-0125"
    ASSISTANT_INSTRUCTIONS: Optional[str] = None

    # ---- Form Validation ----
    PROMPT_MAX_LENGTH: int = 200  # exclusive

    # ---- Run Polling ----
    RUN_POLL_ATTEMPTS: int = 20
    RUN_POLL_INTERVAL: float = 1.0  # seconds

    # ---- Cleanup ----
    # "account" wipes every assistant and file under the key,
    # "request" only removes what the current request created.
    CLEANUP_SCOPE: Literal["account", "request"] = "account"

    # ---- Logging ----
    LOG_LEVEL: str = "INFO"

    # ---- Pydantic meta ----
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
