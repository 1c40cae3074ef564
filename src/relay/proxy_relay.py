"""代理转发器 - 携带服务端凭证把请求转发到上游翻译服务."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from relay.content_types import ResponseKind, classify_content_type
from config.logging_config import get_logger

logger = get_logger(__name__)

ERROR_MESSAGE = "Failed to process request"

# 逐跳头部不能原样透传；响应体按解码后的字节转发，编码和长度头也需去掉
DROPPED_RESPONSE_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-encoding",
        "content-length",
    }
)


class RelayOutcome(str, Enum):
    """一次转发的终止状态."""

    JSON = "json"
    BINARY = "binary"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass
class FormBody:
    """multipart表单请求体，重定向时需要原样重发."""

    fields: List[Tuple[str, str]] = field(default_factory=list)
    files: List[Tuple[str, Tuple[str, bytes, str]]] = field(default_factory=list)


@dataclass
class RelayResult:
    """归一化后的转发结果."""

    outcome: RelayOutcome
    status_code: int
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    stream: Optional[AsyncIterator[bytes]] = None
    hops: int = 0
    upstream: Optional[httpx.Response] = None

    async def aclose(self) -> None:
        """释放二进制响应占用的上游连接."""
        if self.upstream is not None:
            await self.upstream.aclose()

    async def iter_body(self) -> AsyncIterator[bytes]:
        """逐块产出响应体，无论正常结束还是客户端中途断开都会关闭上游连接."""
        try:
            if self.stream is not None:
                async for chunk in self.stream:
                    yield chunk
        finally:
            await self.aclose()


def normalize_base_url(url: str) -> str:
    """补全协议并去掉末尾的斜杠."""
    url = (url or "").strip()
    if not url.startswith("http"):
        url = f"https://{url}"
    return url.rstrip("/")


def error_result(exc: Exception) -> RelayResult:
    """把任意异常转换为固定格式的500错误信封."""
    return RelayResult(
        outcome=RelayOutcome.ERROR,
        status_code=500,
        payload={"error": ERROR_MESSAGE, "details": str(exc)},
    )


def is_redirect_status(status_code: int) -> bool:
    return 300 <= status_code < 400


class ProxyRelay:
    """无状态的上游转发器，手动处理重定向并统一响应形态."""

    def __init__(
        self,
        base_url: str,
        token: str,
        max_redirects: int = 5,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        初始化转发器.

        Args:
            base_url: 上游服务地址，缺少协议时补全为https
            token: Bearer凭证，只在服务端使用
            max_redirects: 最多跟随的重定向次数
            client: 可选的httpx客户端，必须关闭自动重定向
            timeout: 请求超时，None时使用httpx默认值
        """
        self.base_url = normalize_base_url(base_url)
        self._token = token
        self.max_redirects = max_redirects
        self._owns_client = client is None
        if client is None:
            client_kwargs: Dict[str, Any] = {"follow_redirects": False}
            if timeout is not None:
                client_kwargs["timeout"] = timeout
            client = httpx.AsyncClient(**client_kwargs)
        self.client = client

    @classmethod
    def from_settings(cls, settings) -> "ProxyRelay":
        return cls(
            base_url=settings.api_url,
            token=settings.hf_token,
            max_redirects=settings.max_redirects,
            timeout=settings.request_timeout,
        )

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.strip('/')}"

    def resolve_location(self, location: str) -> str:
        """相对地址基于上游地址解析，绝对地址保持不变."""
        return str(httpx.URL(self.base_url).join(location))

    async def forward(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[List[Tuple[str, str]]] = None,
    ) -> RelayResult:
        """
        转发一次请求并返回归一化结果.

        Args:
            method: HTTP方法
            path: 相对于上游地址的路径
            body: FormBody表示multipart表单，其它非None值按JSON发送
            params: 查询参数

        Returns:
            JSON、BINARY、FALLBACK或ERROR四种终止状态之一
        """
        url = self.build_url(path)
        logger.info(f"转发请求: {method} {url}")
        response = None
        try:
            response = await self._send(method, url, body, params)
            hops = 0
            while (
                is_redirect_status(response.status_code)
                and hops < self.max_redirects
            ):
                location = response.headers.get("location")
                if not location:
                    logger.warning(
                        f"重定向响应缺少Location头，直接返回: {response.status_code}"
                    )
                    break
                hops += 1
                url = self.resolve_location(location)
                logger.info(f"重定向 {hops} 到: {url}")
                await response.aclose()
                response = await self._send(method, url, body, params)

            if is_redirect_status(response.status_code) and hops >= self.max_redirects:
                logger.warning(
                    f"超过最大重定向次数({self.max_redirects})，返回当前响应: {url}"
                )
            logger.info(f"最终响应: {response.status_code} {response.reason_phrase}")
            return await self._shape(response, hops)
        except Exception as e:
            logger.exception(f"代理请求失败: {str(e)}")
            if response is not None:
                await response.aclose()
            return error_result(e)

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        params: Optional[List[Tuple[str, str]]],
    ) -> httpx.Response:
        """每一跳都重新构建请求，保证方法、头部和请求体一致."""
        headers = {"Authorization": f"Bearer {self._token}"}
        request_kwargs: Dict[str, Any] = {}
        if isinstance(body, FormBody):
            data: Dict[str, List[str]] = {}
            for key, value in body.fields:
                data.setdefault(key, []).append(value)
            request_kwargs["data"] = data
            if body.files:
                request_kwargs["files"] = body.files
        elif body is not None:
            headers["Content-Type"] = "application/json"
            request_kwargs["json"] = body
        request = self.client.build_request(
            method, url, headers=headers, params=params, **request_kwargs
        )
        return await self.client.send(request, stream=True, follow_redirects=False)

    async def _shape(self, response: httpx.Response, hops: int) -> RelayResult:
        kind = classify_content_type(response.headers.get("content-type"))
        success_status = 200 if response.is_success else response.status_code

        if kind is ResponseKind.JSON:
            try:
                await response.aread()
                payload = response.json()
            finally:
                await response.aclose()
            return RelayResult(
                outcome=RelayOutcome.JSON,
                status_code=success_status,
                payload=payload,
                hops=hops,
            )

        if kind is ResponseKind.BINARY:
            headers = {
                key: value
                for key, value in response.headers.items()
                if key.lower() not in DROPPED_RESPONSE_HEADERS
            }
            return RelayResult(
                outcome=RelayOutcome.BINARY,
                status_code=response.status_code,
                headers=headers,
                stream=response.aiter_bytes(),
                hops=hops,
                upstream=response,
            )

        await response.aclose()
        return RelayResult(
            outcome=RelayOutcome.FALLBACK,
            status_code=success_status,
            payload={"success": response.is_success},
            hops=hops,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
