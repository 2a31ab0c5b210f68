from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "FinanceTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_ENDPOINT_URL: Optional[str] = Field(default=None)  # DynamoDB Local
    DYNAMO_CREATE_TABLES: bool = Field(default=False)
    DYNAMO_USERS_TABLE: str = Field(default="finance-tracker-users")
    DYNAMO_TRANSACTIONS_TABLE: str = Field(default="finance-tracker-transactions")
    DYNAMO_BUDGETS_TABLE: str = Field(default="finance-tracker-budgets")
    DYNAMO_BUDGET_KEYS_TABLE: str = Field(default="finance-tracker-budget-keys")
    DYNAMO_INVESTMENTS_TABLE: str = Field(default="finance-tracker-investments")

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Budget period windows
    BUDGET_TIMEZONE: str = Field(default="UTC")
    WEEK_START_DAY: int = Field(default=6, ge=0, le=6)  # 0=Monday, 6=Sunday

    # Listing and analytics
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100
    TREND_MONTHS: int = 12
    TOP_PERFORMERS_LIMIT: int = 5


settings = Settings()
