import os
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]

class Settings(BaseSettings):
    PROJECT_NAME: str = "Cache-Control"
    API_V1_STR: str = "/api"

    # Redis 配置
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX: str = "cache"

    # 缓存目录配置
    CACHE_ROOT_PATH: str = str(PROJECT_ROOT / "cache")
    CACHE_ROOT_URL: str = "/cache/"
    RENDER_CACHE_DIRECTORY: str = "Page"

    # Asset versions
    ASSET_VERSION_NAMESPACE: str = "cache-control-asset-versions"
    DEFAULT_ASSET_CATEGORY: str = "default"

    # 默认 "clear all" 动作
    #   - EXPIRE_ALL: 删除所有带过期时间的缓存
    #   - DELETE_ALL: 删除除保留缓存外的所有缓存
    #   - NAMESPACES: 每行一个 namespace
    CLEAR_ALL_EXPIRE_ALL: bool = True
    CLEAR_ALL_DELETE_ALL: bool = True
    CLEAR_ALL_NAMESPACES: str = ""
    CLEAR_ALL_DIRECTORIES: List[str] = ["Page"]
    CLEAR_ALL_ASSET_VERSIONS: bool = True
    CLEAR_ALL_FULL_PAGE_CACHE: bool = True

    LOG_NAME: str = "cache-control"
    LOG_DIR: str = str(PROJECT_ROOT / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        extra = "ignore"

    def namespaces(self) -> List[str]:
        seen = []
        for line in self.CLEAR_ALL_NAMESPACES.splitlines():
            name = line.strip()
            if name and name not in seen:
                seen.append(name)
        return seen

settings = Settings()
