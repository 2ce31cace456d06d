"""
Model Clients

Responsibilities:
- Talk to generative models for page content, titles and code repair
- Provide a deterministic template fallback when no model is usable
- Route calls between the primary, local and fallback clients

This is the only place where the backend talks to LLMs.
"""
import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from agents.page_templates import default_title, render_template
from agents.prompts import (
    REPAIR_SYSTEM_PROMPT,
    TITLE_SYSTEM_PROMPT,
    build_title_message,
    build_user_message,
    get_system_prompt,
)
from agents.text_utils import clean_title, extract_code, truncate
from errors import ModelClientError

logger = logging.getLogger(__name__)

MODEL_CHOICE_PRIMARY = "primary"
MODEL_CHOICE_LOCAL = "local"


class ModelClient(ABC):
    """Capability to turn prompts into text"""

    name: str = "model"

    @abstractmethod
    async def generate_content(
        self,
        prompt: str,
        context: Optional[str] = None,
        page_type: str = "pc",
    ) -> str:
        """Generate component source for a prompt, optionally modifying ``context``"""

    @abstractmethod
    async def generate_title(self, prompt: str, page_type: str) -> str:
        """Generate a short page title"""

    @abstractmethod
    async def repair_source(self, prompt: str) -> str:
        """Return repaired source for a repair prompt"""


# ============================================================================
# LangChain-backed client
# ============================================================================

class LangChainModelClient(ModelClient):
    """
    Model client backed by LangChain chat models

    One chat model per purpose so temperature and token limits can differ
    (creative content, short titles, conservative repairs).
    """

    def __init__(
        self,
        llm: BaseChatModel,
        title_llm: Optional[BaseChatModel] = None,
        repair_llm: Optional[BaseChatModel] = None,
        name: str = "primary",
    ):
        self.llm = llm
        self.title_llm = title_llm or llm
        self.repair_llm = repair_llm or llm
        self.name = name
        self.prompt_template = ChatPromptTemplate.from_messages([
            ("system", "{system_prompt}"),
            ("user", "{user_message}"),
        ])

    async def _complete(self, llm: BaseChatModel, system_prompt: str, user_message: str) -> str:
        chain = self.prompt_template | llm | StrOutputParser()
        return await chain.ainvoke({
            "system_prompt": system_prompt,
            "user_message": user_message,
        })

    async def generate_content(
        self,
        prompt: str,
        context: Optional[str] = None,
        page_type: str = "pc",
    ) -> str:
        started = time.monotonic()
        logger.info(
            f"[generate_content] client={self.name} page_type={page_type} "
            f"prompt={truncate(prompt, 200)!r} context_len={len(context or '')}"
        )

        raw = await self._complete(
            self.llm,
            get_system_prompt(page_type),
            build_user_message(prompt, context),
        )
        content = extract_code(raw)
        if not content:
            raise ModelClientError(f"{self.name} model returned empty content")

        logger.info(
            f"[generate_content] client={self.name} done in {time.monotonic() - started:.1f}s, "
            f"content_len={len(content)}"
        )
        return content

    async def generate_title(self, prompt: str, page_type: str) -> str:
        raw = await self._complete(
            self.title_llm,
            TITLE_SYSTEM_PROMPT,
            build_title_message(prompt, page_type),
        )
        title = clean_title(raw)
        if not title:
            raise ModelClientError(f"{self.name} model returned an empty title")
        return title

    async def repair_source(self, prompt: str) -> str:
        started = time.monotonic()
        raw = await self._complete(self.repair_llm, REPAIR_SYSTEM_PROMPT, prompt)
        logger.info(
            f"[repair_source] client={self.name} prompt_len={len(prompt)} "
            f"reply_len={len(raw or '')} in {time.monotonic() - started:.1f}s"
        )
        return raw or ""


# ============================================================================
# Deterministic fallback
# ============================================================================

TITLE_KEYWORDS = [
    (("login", "sign in", "登录"), "User Login"),
    (("register", "sign up", "注册"), "User Registration"),
    (("home", "landing", "首页"), "Home"),
    (("product", "shop", "产品", "商品"), "Product Showcase"),
    (("news", "blog", "新闻", "资讯"), "News"),
    (("about", "关于"), "About Us"),
    (("contact", "联系"), "Contact Us"),
    (("dashboard", "仪表"), "Data Dashboard"),
    (("user management", "user list", "用户管理", "用户列表"), "User Management"),
    (("order", "订单"), "Order Management"),
]


def fallback_title(prompt: str, page_type: str) -> str:
    """Keyword-derived title, always defined"""
    keywords = (prompt or "").lower()

    for candidates, title in TITLE_KEYWORDS:
        if any(candidate in keywords for candidate in candidates):
            if title == "User Login" and page_type == "admin":
                return "Admin Login"
            return title

    return default_title(page_type)


def _title_from_prompt(prompt: str) -> str:
    if len(prompt) < 20:
        return prompt
    return prompt[:20] + "..."


class TemplateModelClient(ModelClient):
    """
    Offline client used when no model is configured or the model failed

    Content comes from the page-type template (or light keyword edits of
    the existing code); it never repairs code.
    """

    name = "fallback"

    def __init__(self, templates_dir: Path):
        self.templates_dir = Path(templates_dir)

    async def generate_content(
        self,
        prompt: str,
        context: Optional[str] = None,
        page_type: str = "pc",
    ) -> str:
        logger.info(f"[generate_content] client=fallback page_type={page_type} has_context={bool(context)}")
        if context:
            return self._modify_existing_code(context, prompt)
        return render_template(self.templates_dir, page_type, _title_from_prompt(prompt))

    async def generate_title(self, prompt: str, page_type: str) -> str:
        return fallback_title(prompt, page_type)

    async def repair_source(self, prompt: str) -> str:
        raise ModelClientError("The offline template client cannot repair code")

    @staticmethod
    def _modify_existing_code(current_code: str, prompt: str) -> str:
        modified = current_code
        lowered = prompt.lower()

        if "color" in lowered or "颜色" in prompt:
            modified = re.sub(r"\b(bg|text|border)-blue-(\d00)\b", r"\1-red-\2", modified)

        if "title" in lowered or "标题" in prompt:
            new_title = _title_from_prompt(prompt)
            modified = re.sub(
                r"(<h1[^>]*>)(.*?)(</h1>)",
                lambda m: f"{m.group(1)}{new_title}{m.group(3)}",
                modified,
                count=1,
                flags=re.DOTALL,
            )

        return modified


# ============================================================================
# Routing between clients
# ============================================================================

class ModelRouter:
    """
    Chooses which client serves a call and applies per-operation fallbacks

    - content: chosen client, then the template fallback; raises if both fail
    - title: chosen client, then the keyword fallback; never raises
    - repair: chosen client only; raises on failure
    """

    def __init__(
        self,
        primary: Optional[ModelClient],
        fallback: ModelClient,
        local: Optional[ModelClient] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.local = local

    def select(self, model_choice: Optional[str] = None) -> Optional[ModelClient]:
        """Client for a model choice, or None when only the fallback is available"""
        if model_choice == MODEL_CHOICE_LOCAL:
            if self.local is not None:
                return self.local
            logger.warning("[select] Local model requested but not configured")
            return None
        return self.primary

    async def generate_content(
        self,
        prompt: str,
        context: Optional[str] = None,
        page_type: str = "pc",
        model_choice: Optional[str] = None,
    ) -> str:
        client = self.select(model_choice)
        if client is not None:
            try:
                return await client.generate_content(prompt, context, page_type)
            except Exception as e:
                logger.error(
                    f"[generate_content] {client.name} client failed ({type(e).__name__}: {e}), "
                    f"using fallback"
                )
        else:
            logger.warning("[generate_content] No model client available, using fallback")

        return await self.fallback.generate_content(prompt, context, page_type)

    async def generate_title(
        self,
        prompt: str,
        page_type: str,
        model_choice: Optional[str] = None,
    ) -> str:
        client = self.select(model_choice)
        if client is not None:
            try:
                return await client.generate_title(prompt, page_type)
            except Exception as e:
                logger.warning(f"[generate_title] {client.name} client failed ({e}), using keyword title")

        return fallback_title(prompt, page_type)

    async def repair_source(self, prompt: str, model_choice: Optional[str] = None) -> str:
        client = self.select(model_choice)
        if client is None:
            raise ModelClientError("No model client available for code repair")
        return await client.repair_source(prompt)


__all__ = [
    "ModelClient",
    "LangChainModelClient",
    "TemplateModelClient",
    "ModelRouter",
    "fallback_title",
    "MODEL_CHOICE_PRIMARY",
    "MODEL_CHOICE_LOCAL",
]
