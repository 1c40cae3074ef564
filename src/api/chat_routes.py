"""聊天会话路由 - 以会话为单位驱动会话控制器."""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response

from .session_manager import ChatSessionManager
from chat.controller import ConversationController
from chat.renderer import render_html, render_transcript
from models.models import SelectedFile, SubmitMessageRequest, TargetLanguageRequest
from config.settings import settings
from config.logging_config import get_logger

logger = get_logger(__name__)

# 创建路由实例
router = APIRouter(prefix="/chat/sessions")

# 创建会话管理器实例
session_manager = ChatSessionManager(settings.session_ttl, settings.max_sessions)


def get_proxy_client(request: Request) -> httpx.AsyncClient:
    """会话控制器访问代理路由使用的客户端."""
    return request.app.state.proxy_client


def require_session(session_id: str) -> ConversationController:
    controller = session_manager.get_session(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return controller


def session_view(controller: ConversationController) -> Dict[str, Any]:
    """会话当前状态，包括渲染后的聊天气泡."""
    selected_file: Optional[str] = (
        controller.selected_file.name if controller.selected_file else None
    )
    return {
        "session_id": controller.session_id,
        "messages": [
            bubble.model_dump(mode="json")
            for bubble in render_transcript(controller.messages)
        ],
        "error": controller.error,
        "target_language": controller.target_language,
        "languages": [lang.model_dump() for lang in controller.languages],
        "quick_access_languages": [
            lang.model_dump() for lang in controller.quick_access_languages()
        ],
        "input_mode": controller.input_mode.value,
        "input_text": controller.input_text,
        "selected_file": selected_file,
        "is_submitting": controller.is_submitting,
    }


@router.post("")
async def create_session(client: httpx.AsyncClient = Depends(get_proxy_client)):
    """创建新的聊天会话."""
    controller = await session_manager.create_session(
        client, settings.default_target_language
    )
    return session_view(controller)


@router.get("/{session_id}")
async def get_session(controller: ConversationController = Depends(require_session)):
    return session_view(controller)


@router.get("/{session_id}/view", response_class=HTMLResponse)
async def view_session(controller: ConversationController = Depends(require_session)):
    """以HTML片段返回聊天记录."""
    return render_html(render_transcript(controller.messages))


@router.put("/{session_id}/target-language")
async def set_target_language(
    body: TargetLanguageRequest,
    controller: ConversationController = Depends(require_session),
):
    controller.set_target_language(body.target_language)
    return session_view(controller)


@router.post("/{session_id}/file")
async def select_file(
    file: UploadFile = File(...),
    controller: ConversationController = Depends(require_session),
):
    """
    选择待翻译的文件.

    不支持的文件类型返回400，错误提示包含在会话状态的error字段中.
    """
    selected = SelectedFile(
        name=file.filename or "document",
        content_type=file.content_type or "",
        data=await file.read(),
    )
    if not controller.select_file(selected):
        return JSONResponse(status_code=400, content=session_view(controller))
    return session_view(controller)


@router.delete("/{session_id}/file")
async def clear_file(controller: ConversationController = Depends(require_session)):
    controller.clear_file()
    return session_view(controller)


@router.post("/{session_id}/messages")
async def submit_message(
    body: SubmitMessageRequest,
    controller: ConversationController = Depends(require_session),
):
    """
    提交翻译请求.

    已选择文件时总是提交文件，否则提交text；已有请求处理中时返回409.
    """
    if controller.is_submitting:
        raise HTTPException(status_code=409, detail="A translation is already in progress")
    if body.target_language:
        controller.set_target_language(body.target_language)
    logger.info(
        f"会话 {controller.session_id} 提交翻译，目标语言: {controller.target_language}"
    )

    message = await controller.submit(text=body.text)
    if message is None:
        raise HTTPException(status_code=400, detail="Nothing to translate")
    return session_view(controller)


@router.delete("/{session_id}/error")
async def dismiss_error(controller: ConversationController = Depends(require_session)):
    controller.dismiss_error()
    return session_view(controller)


@router.get("/{session_id}/downloads/{download_id}")
async def download(
    download_id: str, controller: ConversationController = Depends(require_session)
):
    """下载会话中保存的译文文件."""
    document = controller.get_download(download_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Download not found: {download_id}")
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(document.filename)}"
        },
    )


@router.delete("/{session_id}")
async def close_session(session_id: str):
    if not await session_manager.close_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"session_id": session_id, "closed": True}
