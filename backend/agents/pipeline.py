"""
Pipeline wiring - builds the model clients and build components from settings

Usage:
    pipeline_config = build_pipeline_config()
    builder = create_component_builder(pipeline_config)
    router = pipeline_config.model_router()
"""
import logging
from pathlib import Path
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, ConfigDict

import config
from agents.core.builder import ComponentBuilder, CompilerRunner, WebpackRunner
from agents.core.repairer import RepairRequester
from agents.model_client import (
    LangChainModelClient,
    ModelClient,
    ModelRouter,
    TemplateModelClient,
)

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """Explicit configuration handed to the coordinator and the builder"""
    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())

    primary_client: Optional[ModelClient] = None
    fallback_client: ModelClient
    local_client: Optional[ModelClient] = None
    model_name: str = config.AI_MODEL
    max_repair_retries: int = config.MAX_REPAIR_RETRIES

    def model_router(self) -> ModelRouter:
        return ModelRouter(
            primary=self.primary_client,
            fallback=self.fallback_client,
            local=self.local_client,
        )


def create_chat_model(
    provider: str,
    model: str,
    temperature: float,
    max_tokens: int,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> BaseChatModel:
    """Create a LangChain chat model for the given provider"""
    if provider == "gemini":
        return ChatGoogleGenerativeAI(
            google_api_key=api_key,
            model=model,
            temperature=temperature,
            max_output_tokens=max_tokens,
            max_retries=config.AI_MAX_RETRIES,
            timeout=config.AI_REQUEST_TIMEOUT,
        )

    return ChatOpenAI(
        model=model,
        api_key=api_key,
        base_url=base_url,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=config.AI_MAX_RETRIES,
        timeout=config.AI_REQUEST_TIMEOUT,
    )


def _langchain_client(
    provider: str,
    model: str,
    api_key: Optional[str],
    base_url: Optional[str],
    name: str,
) -> LangChainModelClient:
    return LangChainModelClient(
        llm=create_chat_model(
            provider, model, config.AI_TEMPERATURE, config.AI_MAX_TOKENS, api_key, base_url
        ),
        title_llm=create_chat_model(
            provider, model, config.AI_TEMPERATURE, config.AI_TITLE_MAX_TOKENS, api_key, base_url
        ),
        repair_llm=create_chat_model(
            provider, model, config.AI_REPAIR_TEMPERATURE, config.AI_REPAIR_MAX_TOKENS, api_key, base_url
        ),
        name=name,
    )


def build_pipeline_config(templates_dir: Optional[Path] = None) -> PipelineConfig:
    """
    Create the pipeline configuration from environment settings

    Without an API key there is no primary client and every content call
    goes to the template fallback.
    """
    primary: Optional[ModelClient] = None
    if config.AI_PROVIDER == "gemini":
        if config.GEMINI_API_KEY:
            primary = _langchain_client("gemini", config.AI_MODEL, config.GEMINI_API_KEY, None, "gemini")
    elif config.AI_API_KEY:
        primary = _langchain_client("openai", config.AI_MODEL, config.AI_API_KEY, config.AI_BASE_URL, "primary")

    if primary is None:
        logger.warning(f"[build_pipeline_config] No API key for provider '{config.AI_PROVIDER}', using fallback only")

    local: Optional[ModelClient] = None
    if config.LOCAL_MODEL_ENABLED and config.LOCAL_MODEL_URL:
        local = _langchain_client(
            "openai",
            config.LOCAL_MODEL_NAME,
            config.LOCAL_MODEL_API_KEY,
            config.LOCAL_MODEL_URL,
            "local",
        )
        logger.info(f"[build_pipeline_config] Local model client initialized: {config.LOCAL_MODEL_URL}")

    return PipelineConfig(
        primary_client=primary,
        fallback_client=TemplateModelClient(templates_dir or config.TEMPLATES_DIR),
        local_client=local,
        model_name=config.AI_MODEL,
        max_repair_retries=config.MAX_REPAIR_RETRIES,
    )


def create_component_builder(
    pipeline_config: PipelineConfig,
    runner: Optional[CompilerRunner] = None,
    model_router: Optional[ModelRouter] = None,
    workspace_root: Optional[Path] = None,
) -> ComponentBuilder:
    """Create the build orchestrator; repairs go through the model router"""
    router = model_router or pipeline_config.model_router()
    return ComponentBuilder(
        runner=runner or WebpackRunner(config.NPX_BIN, config.BUILD_TIMEOUT_SECONDS),
        repairer=RepairRequester(router),
        workspace_root=workspace_root or config.BUILD_WORKSPACE_ROOT,
        build_system_dir=config.BUILD_SYSTEM_DIR,
        max_repair_retries=pipeline_config.max_repair_retries,
        max_concurrent_builds=config.MAX_CONCURRENT_BUILDS,
    )


__all__ = [
    "PipelineConfig",
    "build_pipeline_config",
    "create_chat_model",
    "create_component_builder",
]
