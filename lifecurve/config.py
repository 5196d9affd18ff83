from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="lifecurve/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Life Curve API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SITE_URL: str = "https://lifecurve.cn"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "lifecurve"

    # DATABASE_URL이 설정되면 POSTGRES_* 조합보다 우선 (테스트용 sqlite 등)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Business Rules (system_config 테이블 값이 있으면 런타임에 덮어씀)
    FREE_USAGE_LIMIT: int = 3  # 곡선 모드별 무료 사용 횟수
    OVERVIEW_POINTS: int = 10  # 개요 해제 비용
    UNLOCK_POINTS: int = 50  # 상세 해설 해제 비용
    ORDER_EXPIRE_MINUTES: int = 30
    TOTAL_GENERATED_BASE: int = 41512  # 통계 조회 실패 시 표시할 기본값
    USAGE_CHECK_FAIL_OPEN: bool = False  # True면 사용량 조회 실패 시 기본값으로 허용

    # Admin
    ADMIN_PASSWORD: str = ""
    ADMIN_SESSION_BACKEND: str = "database"  # database | redis | memory
    ADMIN_SESSION_TTL_DAYS: int = 7
    ADMIN_SESSION_COOKIE: str = "admin_session"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # WeChat Pay
    WECHAT_APP_ID: str = ""
    WECHAT_MCH_ID: str = ""
    WECHAT_API_V3_KEY: str = ""
    WECHAT_PLATFORM_PUBLIC_KEY: str = ""  # 비어 있으면 서명 검증 생략

    # Alipay
    ALIPAY_APP_ID: str = ""
    ALIPAY_PUBLIC_KEY: str = ""

    # Timezone
    TIMEZONE: str = "Asia/Shanghai"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
