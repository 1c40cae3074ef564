"""会话控制器 - 管理聊天记录、输入状态和翻译请求的生命周期."""

import uuid
from typing import Dict, List, Optional, Set

import httpx

from models.models import (
    InputMode,
    Language,
    Message,
    MessageRole,
    SelectedFile,
    SupportedLanguagesResponse,
    TranslatedDocument,
    TranslateTextRequest,
)
from relay.content_types import ResponseKind, classify_content_type, extract_filename
from config.logging_config import get_logger

logger = get_logger(__name__)

TEXT_ENDPOINT = "/api/proxy/translate-text/"
DOCUMENT_ENDPOINT = "/api/proxy/translate-document/"
LANGUAGES_ENDPOINT = "/api/proxy/supported-languages"

SUPPORTED_FILE_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",  # docx
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # xlsx
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",  # pptx
)

# 常用语言，用于快速选择
COMMON_LANGUAGES = ("en", "es", "fr", "de", "zh", "ja", "ru", "ar", "pt", "it")

WELCOME_TEXT = "欢迎使用翻译助手。输入文本或上传文档即可开始翻译。"
LOADING_TEXT = "翻译中..."
COMPLETED_TEXT = "翻译完成"
DOWNLOAD_LABEL = "下载译文文件"
FAILURE_TEXT = "抱歉，翻译过程中出现错误，请重试。"
FAILURE_BANNER = "翻译失败，请重试。"
UNSUPPORTED_FILE_BANNER = "不支持的文件格式，请上传PDF、Word、Excel或PowerPoint文件。"


def loading_message_id(submission_id: str) -> str:
    return f"loading-{submission_id}"


def response_message_id(submission_id: str) -> str:
    return f"response-{submission_id}"


def error_message_id(submission_id: str) -> str:
    return f"error-{submission_id}"


class ConversationController:
    """
    单个聊天会话的控制器.

    聊天记录只追加，唯一的例外是加载占位消息被其终态消息替换；
    替换通过一次性赋值新列表完成，不会出现中间状态.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        session_id: Optional[str] = None,
        target_language: str = "fr",
        download_prefix: Optional[str] = None,
    ):
        """
        初始化会话控制器.

        Args:
            client: 指向代理服务的httpx客户端
            session_id: 会话ID，默认自动生成
            target_language: 默认目标语言
            download_prefix: 译文下载地址前缀
        """
        self.client = client
        self.session_id = session_id or uuid.uuid4().hex
        self.download_prefix = (
            download_prefix or f"/chat/sessions/{self.session_id}/downloads"
        )
        self.messages: List[Message] = []
        self.languages: List[Language] = []
        self.downloads: Dict[str, TranslatedDocument] = {}
        self.target_language = target_language
        self.input_text = ""
        self.selected_file: Optional[SelectedFile] = None
        self.input_mode = InputMode.TEXT
        self.error: Optional[str] = None
        self._pending: Set[str] = set()

    @property
    def is_submitting(self) -> bool:
        return bool(self._pending)

    async def start(self) -> None:
        """会话开始：获取语言列表并显示欢迎消息."""
        await self.fetch_languages()
        self.messages = [
            Message(id="welcome", role=MessageRole.ASSISTANT, content=WELCOME_TEXT)
        ]

    async def fetch_languages(self) -> List[Language]:
        """获取支持的语言列表，失败时保持为空."""
        try:
            response = await self.client.get(LANGUAGES_ENDPOINT)
            if response.is_success:
                data = SupportedLanguagesResponse.model_validate(response.json())
                self.languages = data.languages
        except Exception as e:
            logger.error(f"获取支持的语言失败: {e}")
        return self.languages

    def quick_access_languages(self) -> List[Language]:
        return sorted(
            (lang for lang in self.languages if lang.code in COMMON_LANGUAGES),
            key=lambda lang: lang.name,
        )

    def set_text(self, text: str) -> None:
        self.input_text = text

    def set_target_language(self, code: str) -> None:
        self.target_language = code

    def select_file(self, file: SelectedFile) -> bool:
        """
        选择待翻译的文件.

        Returns:
            文件类型受支持时返回True；否则设置错误提示、清空输入并返回False，
            聊天记录不受影响
        """
        if file.content_type not in SUPPORTED_FILE_TYPES:
            logger.info(f"拒绝不支持的文件类型: {file.content_type}")
            self.error = UNSUPPORTED_FILE_BANNER
            self._reset_input()
            return False
        self.selected_file = file
        self.input_text = f"已选择文件: {file.name}"
        self.input_mode = InputMode.FILE
        self.error = None
        return True

    def clear_file(self) -> None:
        self._reset_input()

    def dismiss_error(self) -> None:
        self.error = None

    async def submit(
        self,
        text: Optional[str] = None,
        file: Optional[SelectedFile] = None,
        target_language: Optional[str] = None,
    ) -> Optional[Message]:
        """
        提交一次翻译.

        已选择的文件总是优先于文本；未传入text时使用输入框内容.
        文本为空且没有文件时不做任何事情并返回None.

        Returns:
            替换加载占位消息的终态消息
        """
        if file is None:
            file = self.selected_file
        if text is None:
            text = self.input_text
        if file is None and (not text or not text.strip()):
            return None
        language = target_language or self.target_language

        submission_id = uuid.uuid4().hex
        loading_id = loading_message_id(submission_id)
        if file is not None:
            self._append(
                Message(
                    id=submission_id,
                    role=MessageRole.USER,
                    content=f"翻译文件: {file.name}",
                    file_name=file.name,
                )
            )
        else:
            self._append(Message(id=submission_id, role=MessageRole.USER, content=text))
        self._append(
            Message(
                id=loading_id,
                role=MessageRole.ASSISTANT,
                content=LOADING_TEXT,
                is_loading=True,
            )
        )

        self._reset_input()
        self.error = None
        self._pending.add(submission_id)

        terminal = None
        try:
            if file is not None:
                terminal = await self._translate_document(submission_id, file, language)
            else:
                terminal = await self._translate_text(submission_id, text, language)
        except Exception as e:
            logger.exception(f"翻译失败: {str(e)}")
            terminal = self._failure(submission_id)
        finally:
            if terminal is None:
                terminal = self._failure(submission_id)
            self._replace(loading_id, terminal)
            self._pending.discard(submission_id)
        return terminal

    def download_url(self, download_id: str) -> str:
        return f"{self.download_prefix}/{download_id}"

    def get_download(self, download_id: str) -> Optional[TranslatedDocument]:
        return self.downloads.get(download_id)

    async def _translate_text(
        self, submission_id: str, text: str, language: str
    ) -> Message:
        payload = TranslateTextRequest(text=text, target_language=language)
        response = await self.client.post(TEXT_ENDPOINT, json=payload.model_dump())
        response.raise_for_status()
        return self._from_json(submission_id, response.json())

    async def _translate_document(
        self, submission_id: str, file: SelectedFile, language: str
    ) -> Message:
        response = await self.client.post(
            DOCUMENT_ENDPOINT,
            data={"target_language": language},
            files={"file": (file.name, file.data, file.content_type)},
        )
        response.raise_for_status()

        content_type = response.headers.get("content-type")
        if classify_content_type(content_type) is ResponseKind.BINARY:
            filename = extract_filename(response.headers.get("content-disposition"))
            download_id = uuid.uuid4().hex
            self.downloads[download_id] = TranslatedDocument(
                filename=filename,
                media_type=content_type,
                content=response.content,
            )
            logger.info(f"收到译文文件: {filename} ({len(response.content)} bytes)")
            return Message(
                id=response_message_id(submission_id),
                role=MessageRole.ASSISTANT,
                content=self.download_url(download_id),
                file_name=filename,
            )
        return self._from_json(submission_id, response.json())

    def _from_json(self, submission_id: str, data) -> Message:
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response payload: {data!r}")
        translated_file_url = data.get("translated_file_url")
        return Message(
            id=response_message_id(submission_id),
            role=MessageRole.ASSISTANT,
            content=data.get("translated_text") or translated_file_url or COMPLETED_TEXT,
            file_name=DOWNLOAD_LABEL if translated_file_url else None,
        )

    def _failure(self, submission_id: str) -> Message:
        self.error = FAILURE_BANNER
        return Message(
            id=error_message_id(submission_id),
            role=MessageRole.ASSISTANT,
            content=FAILURE_TEXT,
            is_error=True,
        )

    def _append(self, message: Message) -> None:
        self.messages = self.messages + [message]

    def _replace(self, loading_id: str, terminal: Message) -> None:
        self.messages = [m for m in self.messages if m.id != loading_id] + [terminal]

    def _reset_input(self) -> None:
        self.input_text = ""
        self.selected_file = None
        self.input_mode = InputMode.TEXT
