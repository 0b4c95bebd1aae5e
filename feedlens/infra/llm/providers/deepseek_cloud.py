"""DeepSeek provider — 공식 API 우선, 실패 시 OpenRouter 경유 동일 모델.

엔드포인트는 API 키가 설정된 것만 체인에 포함된다. 분석 전략은 generate_json만
사용하며, 한 엔드포인트의 실패는 다음 엔드포인트로 넘어가고 모두 실패하면 RuntimeError.
"""

import logging
from typing import Any, NamedTuple

from feedlens.domain.config import AppConfig, get_config
from feedlens.infra.llm.base import BaseLLMProvider, LLMResponse
from feedlens.infra.llm.factory import register_provider

from .openai_provider import OpenAILLMProvider

logger = logging.getLogger(__name__)


class DeepSeekEndpoint(NamedTuple):
    name: str
    key_field: str  # SecretsConfig 필드명
    base_url: str
    model_prefix: str = ""


ENDPOINTS = (
    DeepSeekEndpoint("deepseek-api", "deepseek_api_key", "https://api.deepseek.com/v1"),
    DeepSeekEndpoint("openrouter", "openrouter_api_key", "https://openrouter.ai/api/v1", "deepseek/"),
)


def build_chain(config: AppConfig) -> list[tuple[str, BaseLLMProvider]]:
    """키가 있는 엔드포인트만 OpenAI 호환 클라이언트로 생성 (ENDPOINTS 순서)."""
    chain: list[tuple[str, BaseLLMProvider]] = []
    for endpoint in ENDPOINTS:
        api_key = getattr(config.secrets, endpoint.key_field)
        if not api_key:
            continue
        client = OpenAILLMProvider(
            api_key=api_key,
            base_url=endpoint.base_url,
            default_model=endpoint.model_prefix + config.llm.deepseek_model,
            name=endpoint.name,
        )
        chain.append((endpoint.name, client))
    return chain


class DeepSeekChainProvider(BaseLLMProvider):
    """키가 설정된 DeepSeek 엔드포인트를 순서대로 시도."""

    def __init__(self, chain: list[tuple[str, BaseLLMProvider]] | None = None) -> None:
        self._chain = chain if chain is not None else build_chain(get_config())
        if not self._chain:
            raise RuntimeError("No DeepSeek endpoint configured. Set DEEPSEEK_API_KEY or OPENROUTER_API_KEY.")
        logger.info("DeepSeek endpoints: %s", ", ".join(name for name, _ in self._chain))

    @property
    def provider_name(self) -> str:
        return "deepseek_cloud"

    @property
    def endpoints(self) -> list[str]:
        return [name for name, _ in self._chain]

    async def _first_success(self, method: str, *args: Any, **kwargs: Any) -> Any:
        failures: list[str] = []
        for name, client in self._chain:
            try:
                return await getattr(client, method)(*args, **kwargs)
            except Exception as e:
                logger.warning("DeepSeek endpoint %s failed: %s", name, e)
                failures.append(f"{name}: {e}")
        raise RuntimeError("All DeepSeek endpoints failed: " + "; ".join(failures))

    async def generate(self, prompt: str, **kwargs: Any) -> LLMResponse:
        return await self._first_success("generate", prompt, **kwargs)

    async def generate_json(self, prompt: str, schema: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        return await self._first_success("generate_json", prompt, schema, **kwargs)


register_provider("deepseek_cloud", DeepSeekChainProvider)
