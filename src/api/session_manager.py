"""聊天会话管理器，会话只保存在进程内存中."""

import time
from typing import Callable, Dict, Optional

import httpx

from chat.controller import ConversationController
from config.logging_config import get_logger

logger = get_logger(__name__)


class ChatSessionManager:
    """聊天会话管理器类，空闲超时或超出上限的会话会被丢弃."""

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sessions: Dict[str, ConversationController] = {}  # 存储会话控制器
        self.last_access: Dict[str, float] = {}
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.clock = clock

    async def create_session(
        self, client: httpx.AsyncClient, target_language: str
    ) -> ConversationController:
        """创建会话，加载语言列表并显示欢迎消息."""
        self.evict_expired()
        while len(self.sessions) >= self.max_sessions:
            oldest = min(self.last_access, key=self.last_access.get)
            logger.info(f"会话数达到上限，丢弃最久未使用的会话: {oldest}")
            self._drop(oldest)

        controller = ConversationController(client, target_language=target_language)
        self.sessions[controller.session_id] = controller
        self.last_access[controller.session_id] = self.clock()
        await controller.start()
        logger.info(
            f"创建会话: {controller.session_id}，可用语言 {len(controller.languages)} 种"
        )
        return controller

    def get_session(self, session_id: str) -> Optional[ConversationController]:
        """获取会话并刷新访问时间，不存在或已过期时返回None."""
        self.evict_expired()
        controller = self.sessions.get(session_id)
        if controller is not None:
            self.last_access[session_id] = self.clock()
        return controller

    def evict_expired(self) -> int:
        """丢弃空闲超时的会话，返回丢弃数量."""
        deadline = self.clock() - self.ttl_seconds
        expired = [
            session_id
            for session_id, accessed in self.last_access.items()
            if accessed <= deadline and not self.sessions[session_id].is_submitting
        ]
        for session_id in expired:
            logger.info(f"会话空闲超时: {session_id}")
            self._drop(session_id)
        return len(expired)

    async def close_session(self, session_id: str) -> bool:
        """关闭会话并丢弃其聊天记录和下载文件."""
        if session_id in self.sessions:
            self._drop(session_id)
            logger.info(f"关闭会话: {session_id}")
            return True
        return False

    def _drop(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self.last_access.pop(session_id, None)
