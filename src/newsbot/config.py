"""Configuration management."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from newsbot.core.errors import ConfigError, UnsupportedWindowError
from newsbot.core.windows import TimeWindow

DEFAULT_FEED_PATHS = [
    "/feed",
    "/rss",
    "/atom.xml",
    "/feed.xml",
    "/rss.xml",
    "/index.xml",
    "/feeds/all.atom.xml",
]


@dataclass
class ModelConfig:
    """Model backend settings."""
    backend: str = "openai"
    base_url: str = "http://localhost:11434"
    model: str = "gemma3:4b"
    api_key: str = ""
    username: str = ""
    password: str = ""
    temperature: float = 0.3
    max_tokens: int = 2048
    timeout: float = 120.0
    request_delay: float = 0.0


@dataclass
class HarvestConfig:
    """Feed harvesting settings."""
    max_concurrency: int = 10
    request_timeout: float = 15.0
    max_items_per_source: int = 10
    summary_max_chars: int = 500
    feed_paths: list[str] = field(default_factory=lambda: list(DEFAULT_FEED_PATHS))
    user_agent: str = "newsbot/0.1 (+https://github.com/newsbot)"


@dataclass
class EnrichmentConfig:
    """Model enrichment settings."""
    lookback_window: str = "7days"
    summary_max_attempts: int = 3
    summary_retry_delay: float = 2.0
    min_retry_score: int = 0
    content_max_chars: int = 4000


@dataclass
class DeliveryConfig:
    """Digest delivery settings."""
    window: str = "7days"
    max_items: int = 20
    deliver_without_trends: bool = True
    title: str = ""


@dataclass
class TelegramConfig:
    bot_token: str = ""
    chat_id: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


@dataclass
class SlackConfig:
    webhook_url: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)


@dataclass
class DiscoveryConfig:
    """Source discovery settings."""
    enabled: bool = True
    base_url: str = "https://hn-popularity.cdn.refactoringenglish.com"
    limit: int = 100
    timeout: float = 30.0


@dataclass
class PathsConfig:
    """Path settings."""
    database: Path = Path("data/newsbot.db")
    output_dir: Path = Path("digests")


@dataclass
class ScheduleConfig:
    cron: str = "0 */6 * * *"
    timezone: str = "UTC"
    run_on_start: bool = True


@dataclass
class PromptsConfig:
    """Prompts for the model backend."""
    score: dict = field(default_factory=lambda: {
        "system": (
            "You are a tech news analyst. Score this article on three dimensions (1-10):\n"
            "- relevance: how relevant to software engineers and tech professionals\n"
            "- quality: writing quality, depth, and informativeness\n"
            "- timeliness: how current and timely the topic is\n\n"
            "Also classify into one category (e.g. \"AI/ML\", \"Systems\", \"Web\", \"Security\", "
            "\"DevOps\", \"Programming\", \"Data\", \"Cloud\", \"Open Source\", \"Career\") "
            "and extract 3-5 keywords.\n\n"
            "Respond ONLY with valid JSON using standard ASCII double quotes. No other text:\n"
            "{\"relevance\":N,\"quality\":N,\"timeliness\":N,\"category\":\"...\",\"keywords\":[\"...\",\"...\"]}"
        ),
        "user": "Title: {title}\nSource: {source}\nSummary: {summary}",
    })
    summary: dict = field(default_factory=lambda: {
        "system": (
            "You are a bilingual (English/Chinese) tech content summarizer.\n"
            "For the given article, produce:\n"
            "1. A structured summary in English (4-6 sentences covering the key points)\n"
            "2. A Chinese translation of the article title\n"
            "3. A recommendation reason in Chinese (1-2 sentences explaining why this article "
            "is worth reading)\n\n"
            "Respond ONLY with valid JSON using standard ASCII double quotes. No other text:\n"
            "{\"summary\":\"...\",\"title_localized\":\"...\",\"recommend_reason\":\"...\"}"
        ),
        "user": "Title: {title}\nSource: {source}\nContent: {summary}",
    })
    trends: dict = field(default_factory=lambda: {
        "system": (
            "You are a technology trend analyst. Based on the following list of recently scored "
            "tech articles, identify 2-3 macro technology trends.\n\n"
            "For each trend, provide:\n"
            "- A concise title\n"
            "- A 2-3 sentence description explaining the trend\n"
            "- A list of related article titles from the input (use the exact original titles)\n\n"
            "CRITICAL: Respond ONLY with valid JSON. Use only standard ASCII double quotes. "
            "Example format:\n"
            "{\"trends\":[{\"title\":\"...\",\"description\":\"...\",\"articles\":[\"Article Title 1\"]}]}"
        ),
        "user": "{articles}",
    })


@dataclass
class Settings:
    """Application settings."""

    model: ModelConfig = field(default_factory=ModelConfig)
    harvest: HarvestConfig = field(default_factory=HarvestConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def lookback_window(self) -> TimeWindow:
        return TimeWindow.parse(self.enrichment.lookback_window)

    @property
    def delivery_window(self) -> TimeWindow:
        return TimeWindow.parse(self.delivery.window)

    def validate(self) -> None:
        """Fail fast on values the pipeline cannot run with."""
        try:
            TimeWindow.parse(self.enrichment.lookback_window)
            TimeWindow.parse(self.delivery.window)
        except UnsupportedWindowError as e:
            raise ConfigError(str(e)) from e

        if self.model.backend not in ("openai", "anthropic"):
            raise ConfigError(
                f"unsupported model backend: {self.model.backend!r} (use openai or anthropic)"
            )
        if self.harvest.max_concurrency < 1:
            raise ConfigError("harvest.max_concurrency must be >= 1")
        if self.enrichment.summary_max_attempts < 1:
            raise ConfigError("enrichment.summary_max_attempts must be >= 1")
        for name in ("score", "summary", "trends"):
            prompt = getattr(self.prompts, name)
            if "system" not in prompt or "user" not in prompt:
                raise ConfigError(f"prompts.{name} needs 'system' and 'user' templates")


# Environment variable -> (section, attribute)
ENV_OVERRIDES = {
    "OLLAMA_ADDRESS": ("model", "base_url"),
    "OLLAMA_MODEL": ("model", "model"),
    "OLLAMA_USERNAME": ("model", "username"),
    "OLLAMA_PASSWORD": ("model", "password"),
    "ANTHROPIC_API_KEY": ("model", "api_key"),
    "TG_BOT_TOKEN": ("telegram", "bot_token"),
    "TG_CHAT_ID": ("telegram", "chat_id"),
    "SLACK_WEBHOOK_URL": ("slack", "webhook_url"),
}


def load_config(config_path: Path = Path("newsbot.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")
    return config


def _apply_section(section: Any, name: str, values: Any) -> None:
    if not isinstance(values, dict):
        raise ConfigError(f"section '{name}' must be a mapping")

    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise ConfigError(f"unknown setting '{name}.{key}'")
        if isinstance(getattr(section, key), Path):
            value = Path(value)
        setattr(section, key, value)


def get_settings(
    config_path: Path = Path("newsbot.yaml"),
    env_file: Optional[Path] = Path(".env"),
) -> Settings:
    """Get application settings from .env, YAML config and environment."""
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)

    config = load_config(config_path)
    settings = Settings()

    for name, values in config.items():
        if name not in {f.name for f in fields(settings)}:
            raise ConfigError(f"unknown config section '{name}'")
        _apply_section(getattr(settings, name), name, values)

    # Environment takes precedence over YAML
    for env_name, (section, attr) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(getattr(settings, section), attr, value)

    settings.validate()
    return settings
