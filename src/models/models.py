"""聊天与代理数据模型定义."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """消息角色."""

    USER = "user"
    ASSISTANT = "assistant"


class InputMode(str, Enum):
    """输入模式."""

    TEXT = "text"
    FILE = "file"


class Message(BaseModel):
    """聊天记录中的单条消息."""

    id: str
    role: MessageRole
    content: str
    file_name: Optional[str] = None
    is_loading: bool = False
    is_error: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class Language(BaseModel):
    """支持的语言."""

    code: str
    name: str


class SupportedLanguagesResponse(BaseModel):
    """上游返回的语言列表."""

    languages: List[Language] = []


class SelectedFile(BaseModel):
    """用户选择待翻译的文件."""

    name: str
    content_type: str
    data: bytes


class TranslatedDocument(BaseModel):
    """上游返回的二进制译文，保存在会话内存中供下载."""

    filename: str
    media_type: str
    content: bytes


class TranslateTextRequest(BaseModel):
    """文本翻译请求数据模型."""

    text: str
    target_language: str


class SubmitMessageRequest(BaseModel):
    """聊天提交请求，text为空时使用已选择的文件."""

    text: Optional[str] = None
    target_language: Optional[str] = None


class TargetLanguageRequest(BaseModel):
    """切换目标语言."""

    target_language: str
