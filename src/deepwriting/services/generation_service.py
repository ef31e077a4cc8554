"""
生成服务 - 大纲 / 正文 / 标题的提示词构建与流式透传

生成结果只流式返回给前端，不落库；用户在工作台中采纳后随工作台一起保存。
"""
import json
import re
from typing import Any, Iterator, Optional, Union
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from deepwriting.core import get_logger
from deepwriting.core.exceptions import TitleParseError
from deepwriting.schemas.workspace import TitleItem
from deepwriting.services.llm_service import get_llm_service
from deepwriting.services.workspace_normalizer import (
    normalize_requirements,
    normalize_style,
    normalize_title,
)

logger = get_logger(__name__)

# 标题生成只取正文前 2000 字，避免超出上下文
TITLE_CONTENT_LIMIT = 2000
URL_CONTENT_LIMIT = 20000
TITLE_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

PRESET_STYLES = [
    {"id": "tech_blog", "name": "技术博客风", "name_en": "Tech Blog", "desc": "清晰直接、代码示例、实操性强"},
    {"id": "economist", "name": "经济学人风", "name_en": "The Economist", "desc": "严谨客观、数据驱动、全球视野"},
    {"id": "academic", "name": "学术论文风", "name_en": "Academic", "desc": "引用严谨、逻辑缜密、措辞考究"},
    {"id": "storytelling", "name": "故事叙事风", "name_en": "Storytelling", "desc": "娓娓道来、场景感强、代入感十足"},
    {"id": "luxun", "name": "鲁迅风", "name_en": "Lu Xun Style", "desc": "犀利讽刺、言简意赅、一针见血"},
    {"id": "jkrowling", "name": "JK罗琳风", "name_en": "J.K. Rowling Style", "desc": "想象力丰富、细节生动、引人入胜"},
    {"id": "shitiesheng", "name": "史铁生风", "name_en": "Shi Tiesheng Style", "desc": "沉静内省、温暖深沉、哲理性强"},
]


OUTLINE_SYSTEM_PROMPT = """你是一位专业的写作大纲规划师。根据用户提供的素材和风格要求，生成一份结构清晰的 Markdown 格式文章大纲。

要求：
- 用 ## 标记章节标题
- 每个章节下用 - 列出 2-4 个要点
- 大纲应该逻辑清晰、层次分明
- 重要度高的素材应给予更多篇幅
- 直接输出大纲内容，不要解释"""

OUTLINE_PROMPT = """## 素材内容

{materials_text}

## 风格要求

{style}

## 写作要求

{requirements}

请生成文章大纲："""

CONTENT_SYSTEM_PROMPT = """你是一位专业的文章撰写者。根据提供的素材、风格要求和大纲，撰写一篇完整的文章。

要求：
- 严格按照大纲结构展开
- 充分利用素材中的信息和数据
- 保持风格一致
- 文章要有可读性，段落间衔接自然
- 直接输出正文内容，不要包含标题，不要加任何说明或解释"""

CONTENT_PROMPT = """## 素材内容

{materials_text}

## 风格要求

{style}

## 写作要求

{requirements}

## 文章大纲

{outline}

请撰写完整正文："""

TITLE_SYSTEM_PROMPT = """你是一位标题创作专家。根据文章内容生成 10 个候选标题。

你必须严格按照以下 JSON 格式输出，不要输出任何其他内容：
[
  {"title": "标题文本", "category": "分类", "score": 评分}
]

category 必须是以下之一：numeric（数字型）、emotion（情感型）、suspense（悬念型）、contrast（对比型）、breaking（爆料型）
score 是 1-10 的浮点数，表示标题质量评分

只输出 JSON 数组，不要输出任何解释文字。"""

TITLE_PROMPT = """文章内容摘要：

{content_summary}

请生成 10 个候选标题（JSON 格式）："""


# ============ 提示词片段 ============

def build_style_prompt(style: Union[str, dict, None]) -> str:
    """
    风格要求文本

    前端可以直接传渲染好的字符串，也可以传工作台里的 style 对象。
    """
    if isinstance(style, str):
        return style

    settings = normalize_style(style)
    parts: list[str] = []
    if settings.selected_preset:
        preset = next((p for p in PRESET_STYLES if p["id"] == settings.selected_preset), None)
        if preset:
            parts.append(f"写作风格：{preset['name']}（{preset['desc']}）")
    if settings.custom_style_text:
        parts.append(f"自定义风格参考：\n{settings.custom_style_text}")
    parts.append(f"情感浓度：{settings.emotion_level}/10")
    parts.append(f"专业深度：{settings.professional_level}/10")
    parts.append(f"口语化程度：{settings.colloquial_level}/10")
    return "\n".join(parts)


def build_requirements_prompt(requirements: Union[str, dict, None]) -> str:
    """写作要求文本，规则同 build_style_prompt"""
    if isinstance(requirements, str):
        return requirements
    if requirements is None:
        return ""

    req = normalize_requirements(requirements)
    parts = [
        f"目标字数：约 {req.target_word_count} 字",
        f"目标读者：{req.audience}",
        f"写作目标：{req.purpose}",
    ]
    if req.custom_requirement.strip():
        parts.append(f"补充要求：\n{req.custom_requirement}")
    return "\n".join(parts)


def _is_url(text: str) -> bool:
    try:
        parsed = urlparse(text.strip())
        return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
    except ValueError:
        return False


def fetch_url_text(url: str) -> Optional[str]:
    """抓取网页正文，失败返回 None"""
    try:
        headers = {
            "User-Agent": (
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/120.0.0.0 Safari/537.36"
            ),
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
        }
        response = requests.get(url.strip(), headers=headers, timeout=10)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"URL 素材抓取失败: {url}, error={e}")
        return None

    soup = BeautifulSoup(response.text, "html.parser")
    for node in soup(["script", "style", "nav", "footer", "header"]):
        node.decompose()
    text = soup.get_text(separator="\n")
    lines = [line.strip() for line in text.split("\n")]
    merged = "\n".join(line for line in lines if line)
    return merged[:URL_CONTENT_LIMIT] if merged else None


def build_materials_text(materials: Any) -> str:
    """
    素材文本，按原顺序拼接

    url 类型且内容是链接的素材会先抓取网页正文，抓取失败时保留链接本身。
    """
    if not isinstance(materials, list):
        return ""

    blocks = []
    for index, item in enumerate(materials):
        m = item if isinstance(item, dict) else {}
        name = m.get("name") if isinstance(m.get("name"), str) and m.get("name").strip() else f"素材 {index + 1}"
        content = m.get("content") if isinstance(m.get("content"), str) else ""
        importance = m.get("importance", 3)

        if m.get("type") == "url" and _is_url(content):
            content = fetch_url_text(content) or content

        blocks.append(f"【{name}】(重要度 {importance}/5)\n{content}")
    return "\n\n---\n\n".join(blocks)


# ============ 标题解析 ============

def parse_title_candidates(text: str) -> list[TitleItem]:
    """
    从模型输出中提取候选标题

    取第一个 "[" 到最后一个 "]" 之间的内容按 JSON 数组解析，
    空标题被丢弃，id 按顺序编号。

    Raises:
        TitleParseError: 找不到可解析的 JSON 数组
    """
    match = TITLE_ARRAY_PATTERN.search(text or "")
    if not match:
        raise TitleParseError()
    try:
        parsed = json.loads(match.group(0))
    except ValueError as e:
        raise TitleParseError() from e
    if not isinstance(parsed, list):
        raise TitleParseError()

    titles = []
    for index, item in enumerate(parsed):
        raw = dict(item) if isinstance(item, dict) else {}
        raw["id"] = str(index + 1)
        title = normalize_title(raw, index)
        if title.title:
            titles.append(title)
    return titles


# ============ 流式生成 ============

class GenerationService:
    """大纲 / 正文 / 标题生成"""

    def __init__(self, llm_service=None):
        self._llm_service = llm_service

    @property
    def llm(self):
        if self._llm_service is None:
            self._llm_service = get_llm_service()
        return self._llm_service

    def stream_outline(self, materials: Any, style: Any, requirements: Any) -> Iterator[str]:
        """流式生成大纲"""
        prompt = OUTLINE_PROMPT.format(
            materials_text=build_materials_text(materials) or "（用户未提供素材，请生成一个通用的文章框架）",
            style=build_style_prompt(style),
            requirements=build_requirements_prompt(requirements) or "（无额外要求）",
        )
        return self._stream("outline", prompt, OUTLINE_SYSTEM_PROMPT)

    def stream_content(self, materials: Any, style: Any, requirements: Any, outline: Any) -> Iterator[str]:
        """流式生成正文"""
        prompt = CONTENT_PROMPT.format(
            materials_text=build_materials_text(materials) or "（无素材）",
            style=build_style_prompt(style),
            requirements=build_requirements_prompt(requirements) or "（无额外要求）",
            outline=outline if isinstance(outline, str) and outline else "（无大纲，请自由发挥）",
        )
        return self._stream("content", prompt, CONTENT_SYSTEM_PROMPT)

    def stream_titles(self, content: Any) -> Iterator[str]:
        """流式生成候选标题（输出中包含 JSON 数组）"""
        summary = content[:TITLE_CONTENT_LIMIT] if isinstance(content, str) else ""
        prompt = TITLE_PROMPT.format(content_summary=summary)
        return self._stream("title", prompt, TITLE_SYSTEM_PROMPT)

    def _stream(self, kind: str, prompt: str, system_prompt: str) -> Iterator[str]:
        llm = self.llm
        logger.info(f"开始流式生成: {kind}, prompt 长度={len(prompt)}")

        def generate():
            total = 0
            try:
                for chunk in llm.stream(prompt, system_prompt=system_prompt):
                    total += len(chunk)
                    yield chunk
            except Exception as e:
                # 响应头已经发出，只能提前结束流
                logger.error(f"流式生成失败: {kind}, error={e}", exc_info=True)
                return
            logger.info(f"流式生成完成: {kind}, 输出 {total} 字符")

        return generate()


# 全局单例
_generation_service: Optional[GenerationService] = None


def get_generation_service() -> GenerationService:
    """获取生成服务单例"""
    global _generation_service
    if _generation_service is None:
        _generation_service = GenerationService()
    return _generation_service
