from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "SmartFinanceAdvisor"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_INCOMES_TABLE: str = Field(default="finance-incomes")
    DYNAMO_EXPENSES_TABLE: str = Field(default="finance-expenses")
    DYNAMO_BUDGETS_TABLE: str = Field(default="finance-budgets")
    DYNAMO_GOALS_TABLE: str = Field(default="finance-goals")
    DYNAMO_BEHAVIOR_TABLE: str = Field(default="finance-user-behavior")
    DYNAMO_ALERTS_TABLE: str = Field(default="finance-fraud-alerts")
    DYNAMO_REPORTS_TABLE: str = Field(default="finance-reports")
    # GSI with partition key user_id and sort key date on incomes and expenses
    DYNAMO_DATE_INDEX: str = Field(default="user_id-date-index")

    # AWS S3
    S3_BUCKET_NAME: str = Field(default="finance-reports")
    S3_REGION: str = Field(default="eu-west-1")

    # JWT Authentication (tokens are issued by the identity service)
    JWT_SECRET_KEY: str = Field(default="change-me", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # External recommendation provider, disabled unless both are set
    FINANCE_API_URL: Optional[str] = None
    FINANCE_API_KEY: Optional[str] = None
    FINANCE_API_TIMEOUT_SECONDS: float = 5.0

    # Rate limiting
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_SWEEP_SECONDS: int = 60

    SCHEDULER_ENABLED: bool = True

    # Server
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
