from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Project Info
    PROJECT_NAME: str = Field(default="Data Center Inventory - ShortID Service", env="PROJECT_NAME")
    VERSION: str = Field(default="1.0.0", env="VERSION")
    API_V1_STR: str = Field(default="/api/v1", env="API_V1_STR")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # Server Settings
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8000, env="PORT")
    WORKERS: int = Field(default=1, env="WORKERS")

    # CORS Settings
    CORS_ORIGINS: List[str] = Field(default=["*"], env="CORS_ORIGINS")
    CORS_CREDENTIALS: bool = Field(default=True, env="CORS_CREDENTIALS")
    CORS_METHODS: List[str] = Field(default=["*"], env="CORS_METHODS")
    CORS_HEADERS: List[str] = Field(default=["*"], env="CORS_HEADERS")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")
    LOG_DIR: Path = Field(default=Path("logs"), env="LOG_DIR")
    LOG_BACKUP_DAYS: int = Field(default=30, env="LOG_BACKUP_DAYS")
    ENVIRONMENT: str = Field(default="production", env="ENVIRONMENT")

    # Logstash Configuration
    ENABLE_LOGSTASH: bool = Field(default=False, env="ENABLE_LOGSTASH")
    LOGSTASH_HOST: str = Field(default="localhost", env="LOGSTASH_HOST")
    LOGSTASH_PORT: int = Field(default=5000, env="LOGSTASH_PORT")

    # Database Configuration（设置后覆盖MySQL配置，测试使用 sqlite://）
    DATABASE_URL: Optional[str] = Field(default=None, env="DATABASE_URL")
    DATABASE_ECHO: bool = Field(default=False, env="DATABASE_ECHO")

    # MySQL Database Settings
    MYSQL_USER: str = Field(default="root", env="MYSQL_USER")
    MYSQL_PASSWORD: str = Field(default="123456", env="MYSQL_PASSWORD")
    MYSQL_HOST: str = Field(default="localhost", env="MYSQL_HOST")
    MYSQL_PORT: int = Field(default=3306, env="MYSQL_PORT")
    MYSQL_DB: str = Field(default="dcim_db", env="MYSQL_DB")

    # ShortID Pool
    SHORT_ID_MAX_GENERATE: int = Field(default=10000, env="SHORT_ID_MAX_GENERATE")
    SHORT_ID_ALLOCATE_RETRIES: int = Field(default=5, env="SHORT_ID_ALLOCATE_RETRIES")
    SHORT_ID_DISPLAY_PREFIX: str = Field(default="E-", env="SHORT_ID_DISPLAY_PREFIX")
    SHORT_ID_DISPLAY_PADDING: int = Field(default=5, env="SHORT_ID_DISPLAY_PADDING")
    # 数据库 INT 列上限
    SHORT_ID_MAX_VALUE: int = Field(default=2147483647, env="SHORT_ID_MAX_VALUE")
    # 允许绑定从未生成过的shortID（兼容旧调用方，使用时会记录审计日志）
    SHORT_ID_ALLOW_IMPLICIT_CREATE: bool = Field(default=False, env="SHORT_ID_ALLOW_IMPLICIT_CREATE")
    RECORDS_DEFAULT_PAGE_SIZE: int = Field(default=50, env="RECORDS_DEFAULT_PAGE_SIZE")
    RECORDS_MAX_PAGE_SIZE: int = Field(default=200, env="RECORDS_MAX_PAGE_SIZE")

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}?charset=utf8mb4"
        )

    @property
    def IS_SQLITE(self) -> bool:
        return self.SQLALCHEMY_DATABASE_URI.startswith("sqlite")

    @field_validator("CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("SHORT_ID_MAX_GENERATE", "SHORT_ID_ALLOCATE_RETRIES", "SHORT_ID_MAX_VALUE", "RECORDS_MAX_PAGE_SIZE")
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


# Create settings instance
settings = Settings()
