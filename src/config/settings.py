"""应用配置管理模块."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """应用配置类."""

    # 上游翻译服务
    api_url: str = Field(default="", env="API_URL")
    hf_token: str = Field(default="", env="HF_TOKEN")
    max_redirects: int = Field(default=5, env="MAX_REDIRECTS", ge=0, le=20)
    # 未设置时沿用httpx的默认超时
    request_timeout: Optional[float] = Field(default=None, env="REQUEST_TIMEOUT")
    # 聊天会话
    default_target_language: str = Field(default="fr", env="DEFAULT_TARGET_LANGUAGE")
    chat_proxy_url: Optional[str] = Field(default=None, env="CHAT_PROXY_URL")
    # 空闲超时和会话上限，超出后丢弃会话及其下载文件
    session_ttl: int = Field(default=3600, env="SESSION_TTL", ge=1)
    max_sessions: int = Field(default=1000, env="MAX_SESSIONS", ge=1)
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    class Config:
        """Pydantic配置."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
