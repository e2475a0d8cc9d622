from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "BudgetBloom"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"]
    )

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_ENDPOINT_URL: Optional[str] = Field(default=None)  # DynamoDB Local, e.g. http://localhost:8001
    DYNAMO_USERS_TABLE: str = Field(default="budgetbloom-users", validation_alias="DYNAMO_TABLE_USERS")
    DYNAMO_EXPENSES_TABLE: str = Field(default="budgetbloom-expenses", validation_alias="DYNAMO_TABLE_EXPENSES")
    DYNAMO_SAVINGS_GOALS_TABLE: str = Field(
        default="budgetbloom-savings-goals", validation_alias="DYNAMO_TABLE_SAVINGS_GOALS"
    )

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(default="change-me-in-production", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60  # 1 hour

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
