from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    # ALL_PLANS: credit hours count live assignments of every plan in the year.
    # CURRENT_PLAN: only the year's current plan is counted.
    credit_hours_scope: str = Field("ALL_PLANS", alias="CREDIT_HOURS_SCOPE")
    default_student_group_size: int = Field(1, alias="DEFAULT_STUDENT_GROUP_SIZE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
