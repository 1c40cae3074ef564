"""路径重写中间件 - 把翻译请求交给代理路由处理."""

from typing import Optional, Sequence

PROXY_PREFIX = "/api/proxy"
REWRITE_PREFIXES = ("/translate-text", "/translate-document")


def rewrite_path(
    path: str, prefixes: Sequence[str] = REWRITE_PREFIXES
) -> Optional[str]:
    """返回重写后的路径，不需要重写时返回None."""
    if any(path.startswith(prefix) for prefix in prefixes):
        return f"{PROXY_PREFIX}{path}"
    return None


class ProxyRewriteMiddleware:
    """在正常路由之前把 /translate-text 和 /translate-document 重写到代理路由."""

    def __init__(self, app, prefixes: Sequence[str] = REWRITE_PREFIXES):
        self.app = app
        self.prefixes = tuple(prefixes)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            new_path = rewrite_path(scope["path"], self.prefixes)
            if new_path is not None:
                scope = dict(scope)
                scope["path"] = new_path
                scope["raw_path"] = new_path.encode("utf-8")
        await self.app(scope, receive, send)
