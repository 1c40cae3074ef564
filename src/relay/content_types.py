"""响应内容类型分类 - 决定代理以JSON、二进制还是兜底信封返回."""

import re
from enum import Enum
from typing import Optional


class ResponseKind(str, Enum):
    """上游响应的三种形态."""

    JSON = "json"
    BINARY = "binary"
    FALLBACK = "fallback"


DEFAULT_DOWNLOAD_NAME = "translated-document"

_FILENAME_PATTERN = re.compile(r'filename="?([^"]+)"?')


def classify_content_type(content_type: Optional[str]) -> ResponseKind:
    """
    根据Content-Type对响应进行分类.

    Args:
        content_type: 响应头中的Content-Type，可能为空

    Returns:
        JSON、BINARY（octet-stream及其它application/*）或FALLBACK
    """
    if not content_type:
        return ResponseKind.FALLBACK
    media_type = content_type.lower()
    if "application/json" in media_type:
        return ResponseKind.JSON
    if "application/octet-stream" in media_type or "application/" in media_type:
        return ResponseKind.BINARY
    return ResponseKind.FALLBACK


def extract_filename(
    content_disposition: Optional[str], default: str = DEFAULT_DOWNLOAD_NAME
) -> str:
    """从Content-Disposition中提取文件名，取不到时返回默认名."""
    if content_disposition:
        match = _FILENAME_PATTERN.search(content_disposition)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return default
