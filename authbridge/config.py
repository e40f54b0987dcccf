import os
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "ssh-authbridge"

    # Logging goes to stderr; stdout carries the frame channel
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Auxiliary descriptor handed over by legacy callers
    AUTH_FD: int = 3

    # Trust-validation backend
    TRUST_BACKEND_URL: str = os.getenv("TRUST_BACKEND_URL", "http://127.0.0.1:4000")
    TRUST_BACKEND_TOKEN: Optional[str] = os.getenv("TRUST_BACKEND_TOKEN")
    TRUST_BACKEND_TIMEOUT: float = float(os.getenv("TRUST_BACKEND_TIMEOUT", "10.0"))

    # Overrides the command reported by the backend when set
    SSH_COMMAND: Optional[str] = os.getenv("SSH_COMMAND")

    # I/O limits
    PROMPT_MAX_BYTES: int = 65536
    RELAY_CHUNK_SIZE: int = 65536

    @field_validator("AUTH_FD", mode="before")
    @classmethod
    def validate_auth_fd(cls, v):
        if v == "" or v is None:
            return 3
        return int(v)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
