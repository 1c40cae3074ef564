"""消息渲染 - 把消息映射为聊天气泡."""

import html
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from models.models import Message, MessageRole


class BubbleVariant(str, Enum):
    """气泡样式."""

    LOADING = "loading"
    ERROR = "error"
    NORMAL = "normal"
    FILE_DOWNLOAD = "file-download"


class Bubble(BaseModel):
    """单个聊天气泡的展示数据."""

    id: str
    align: str  # "right"为用户, "left"为助手
    variant: BubbleVariant
    text: str
    attachment: Optional[str] = None  # 用户上传的文件名
    download_href: Optional[str] = None
    download_label: Optional[str] = None
    time: str


def render_message(message: Message) -> Bubble:
    """把一条消息渲染为气泡，不修改消息本身."""
    is_user = message.role is MessageRole.USER
    if message.is_loading:
        variant = BubbleVariant.LOADING
    elif message.is_error:
        variant = BubbleVariant.ERROR
    elif not is_user and message.file_name:
        variant = BubbleVariant.FILE_DOWNLOAD
    else:
        variant = BubbleVariant.NORMAL

    bubble = Bubble(
        id=message.id,
        align="right" if is_user else "left",
        variant=variant,
        text=message.content,
        time=message.timestamp.strftime("%H:%M"),
    )
    if is_user and message.file_name:
        bubble.attachment = message.file_name
    if variant is BubbleVariant.FILE_DOWNLOAD:
        bubble.download_href = message.content
        bubble.download_label = message.file_name
    return bubble


def render_transcript(messages: List[Message]) -> List[Bubble]:
    return [render_message(message) for message in messages]


def render_html(bubbles: List[Bubble]) -> str:
    """渲染聊天记录的HTML片段."""
    html_content = '<div class="chat-transcript">\n'
    for bubble in bubbles:
        html_content += (
            f'    <div class="message message-{bubble.align} message-{bubble.variant.value}"'
            f' id="{html.escape(bubble.id)}">\n'
        )
        if bubble.attachment:
            html_content += (
                f'        <div class="message-file">{html.escape(bubble.attachment)}</div>\n'
            )
        html_content += (
            f'        <div class="message-content">{html.escape(bubble.text)}</div>\n'
        )
        if bubble.download_href:
            html_content += (
                f'        <a class="message-download" href="{html.escape(bubble.download_href)}"'
                f' target="_blank" rel="noopener noreferrer">'
                f"{html.escape(bubble.download_label or '')}</a>\n"
            )
        html_content += f'        <div class="message-time">{bubble.time}</div>\n'
        html_content += "    </div>\n"
    html_content += "</div>\n"
    return html_content
