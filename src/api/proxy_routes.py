"""代理路由 - 把 /api/proxy/* 转发到上游翻译服务."""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.datastructures import UploadFile
from starlette.responses import Response

from relay.proxy_relay import (
    FormBody,
    ProxyRelay,
    RelayOutcome,
    RelayResult,
    error_result,
)
from config.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/proxy")


def get_relay(request: Request) -> ProxyRelay:
    """应用启动时创建的共享转发器."""
    return request.app.state.relay


async def read_inbound_body(request: Request) -> Any:
    """
    读取入站请求体并保留其格式.

    multipart表单转换为FormBody，其它请求体按JSON解析，GET或空请求体返回None.
    """
    if request.method in ("GET", "HEAD"):
        return None
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        form = await request.form()
        body = FormBody()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                body.files.append(
                    (
                        key,
                        (
                            value.filename or key,
                            await value.read(),
                            value.content_type or "application/octet-stream",
                        ),
                    )
                )
            else:
                body.fields.append((key, value))
        return body
    raw = await request.body()
    if not raw:
        return None
    return json.loads(raw)


def to_response(result: RelayResult) -> Response:
    """把转发结果转换为FastAPI响应."""
    if result.outcome is RelayOutcome.BINARY:
        return StreamingResponse(
            result.iter_body(),
            status_code=result.status_code,
            headers=result.headers,
        )
    return JSONResponse(result.payload, status_code=result.status_code)


@router.api_route("/{path:path}", methods=["GET", "POST"])
async def proxy(path: str, request: Request, relay: ProxyRelay = Depends(get_relay)):
    """
    转发任意路径到上游服务.

    - POST /translate-text: {text, target_language} -> {translated_text}
    - POST /translate-document: multipart(file, target_language) -> JSON或文件流
    - GET /supported-languages -> {languages: [{code, name}]}
    """
    try:
        body = await read_inbound_body(request)
    except Exception as e:
        logger.exception(f"读取请求体失败: {str(e)}")
        return to_response(error_result(e))

    result = await relay.forward(
        request.method, path, body, params=request.query_params.multi_items()
    )
    return to_response(result)
