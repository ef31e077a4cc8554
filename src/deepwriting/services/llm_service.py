"""
LLM 服务封装 - 统一调用大模型
"""
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
from typing import Iterator, Optional

from deepwriting.core import get_settings, get_logger

logger = get_logger(__name__)
settings = get_settings()


class LLMService:
    """
    LLM 服务封装

    只做透传: 系统提示 + 用户提示 → 文本流
    """

    def __init__(self):
        """初始化 LLM 客户端"""
        self.llm = ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout,
        )
        logger.info(f"LLM 服务初始化完成，使用模型: {settings.openai_model}")

    def _build_messages(self, prompt: str, system_prompt: Optional[str] = None) -> list:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        return messages

    def stream(self, prompt: str, system_prompt: Optional[str] = None) -> Iterator[str]:
        """
        流式调用

        Yields:
            逐块返回的文本
        """
        for chunk in self.llm.stream(self._build_messages(prompt, system_prompt)):
            if chunk.content:
                yield chunk.content


# 全局单例
_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """获取 LLM 服务单例"""
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
