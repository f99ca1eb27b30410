"""
配置文件 - 项目配置管理
"""
import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> tuple[str, ...]:
    """按优先级从低到高列出 dotenv 文件（后者覆盖前者）。"""
    files = [".env", ".env.local"]
    env = os.getenv("ENVIRONMENT", "")
    if env:
        files += [f".env.{env}", f".env.{env}.local"]
    return tuple(files)


class GrpcTlsSettings(BaseModel):
    enabled: bool = False
    cert: Optional[str] = None
    key: Optional[str] = None
    ca: Optional[str] = None


class GrpcSettings(BaseModel):
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 9095
    # This maps to GRPC option grpc.max_concurrent_streams
    max_concurrent_streams: int = 100
    tls: GrpcTlsSettings = Field(default_factory=GrpcTlsSettings)


class HttpSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class DatabaseSettings(BaseModel):
    url: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgrespw"
    name: str = "postgres"
    sslmode: str = "disable"
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False

    @property
    def dsn(self) -> str:
        """显式 URL 优先，否则由分项参数拼装。"""
        if self.url:
            return self.url
        url = (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.name}"
        )
        # asyncpg 使用 ssl 参数而非 libpq 的 sslmode
        if self.sslmode and self.sslmode != "disable":
            url += f"?ssl={self.sslmode}"
        return url


class TelemetrySettings(BaseModel):
    enabled: bool = True
    service_name: str = "board-server"
    exporter: str = "console"  # console, otlp, none
    otlp_endpoint: Optional[str] = None
    sample_rate: float = 1.0
    flush_timeout_ms: int = 2000


class BoardSettings(BaseModel):
    # 严格模式：ListQuestions 空结果与 Like/Unlike 不存在的问题返回 not-found
    strict: bool = True


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Board")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="localhost")
    HOSTNAME: str = Field(default="unknown")
    # 未设置时 DEBUG 下为 DEBUG，否则 INFO
    LOG_LEVEL: Optional[str] = Field(default=None)

    grpc: GrpcSettings = Field(default_factory=GrpcSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    board: BoardSettings = Field(default_factory=BoardSettings)

    # CORS配置
    CORS_ORIGINS: list[str] = Field(default=["http://localhost:3000"])

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_tls(self):
        tls = self.grpc.tls
        if tls.enabled and not (tls.cert and tls.key):
            raise ValueError("GRPC TLS enabled but cert/key not provided")
        return self


settings = Settings()
