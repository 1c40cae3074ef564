"""Translation Chat API 主入口."""

from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.chat_routes import router as chat_router
from api.proxy_routes import router as proxy_router
from api.rewrite import ProxyRewriteMiddleware
from relay.proxy_relay import ProxyRelay
from config.settings import settings
from config.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def create_proxy_client(app: FastAPI) -> httpx.AsyncClient:
    """会话控制器访问代理的客户端：配置了地址时走网络，否则直接调用本应用."""
    if settings.chat_proxy_url:
        return httpx.AsyncClient(base_url=settings.chat_proxy_url)
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://translation-chat"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if not settings.api_url.strip():
        logger.warning("未配置API_URL，所有代理请求都将失败，请设置上游翻译服务地址")
    app.state.relay = ProxyRelay.from_settings(settings)
    app.state.proxy_client = create_proxy_client(app)
    logger.info(f"上游翻译服务: {app.state.relay.base_url}")
    try:
        yield
    finally:
        await app.state.proxy_client.aclose()
        await app.state.relay.aclose()


# 创建FastAPI应用实例
app = FastAPI(
    title="Translation Chat API",
    description="翻译聊天服务API，代理外部翻译服务",
    version="1.0.0",
    lifespan=lifespan,
)

# 添加CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# 重写放在最外层，先于路由生效
app.add_middleware(ProxyRewriteMiddleware)

# 包含路由
app.include_router(proxy_router)
app.include_router(chat_router)


@app.get("/")
async def root():
    """根路径，返回API信息"""
    return {
        "message": "Translation Chat API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=18000, reload=True)
