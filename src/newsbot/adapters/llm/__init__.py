"""Model backend adapters."""

from newsbot.adapters.llm.chat_completions_client import ChatCompletionsClient
from newsbot.adapters.llm.claude_client import ClaudeClient
from newsbot.config import ModelConfig
from newsbot.core import ConfigError, LLMClient


def create_llm_client(config: ModelConfig) -> LLMClient:
    """Build the backend selected by ``config.backend``."""
    if config.backend == "openai":
        return ChatCompletionsClient(config)
    if config.backend == "anthropic":
        return ClaudeClient(config)
    raise ConfigError(f"unsupported model backend: {config.backend!r}")


__all__ = ["ChatCompletionsClient", "ClaudeClient", "create_llm_client"]
