"""Crawl configuration: YAML files, .env and environment overrides."""
from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 2
DEFAULT_DELAY = 1.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 30.0
DEFAULT_MEDIA_DIR = "media"
DEFAULT_MAX_NAME_COLLISIONS = 1000

ENV_OVERRIDES = {
    "SHOPCRAWL_START_PAGE": "start_page",
    "SHOPCRAWL_BASE_URL": "base_url",
    "SHOPCRAWL_CONCURRENCY": "concurrency",
    "SHOPCRAWL_AGENT": "agent_type",
    "SHOPCRAWL_MEDIA_DIR": "media_dir",
}

# Flat keys understood for backwards compatibility; each replaces the
# generic tier of its chain.
_LEGACY_SELECTOR_KEYS = {
    "product_name_selector": "name",
    "product_price_selector": "price",
    "product_description_selector": "description",
    "product_image_selector": "image",
}


class ConfigError(ValueError):
    """Raised when configuration is missing or malformed."""


@dataclass(frozen=True)
class SelectorChain:
    """Selectors tried in order: detail-page ones first, then generic ones."""

    detail: Tuple[str, ...] = ()
    generic: Tuple[str, ...] = ()

    def for_page(self, is_detail: bool) -> Tuple[str, ...]:
        return self.detail + self.generic if is_detail else self.generic

    @classmethod
    def from_value(cls, value: Any) -> SelectorChain:
        """Accept a bare selector, a list, or a {detail, generic} mapping."""
        if isinstance(value, SelectorChain):
            return value
        if isinstance(value, Mapping):
            return cls(detail=_as_tuple(value.get("detail")), generic=_as_tuple(value.get("generic")))
        return cls(generic=_as_tuple(value))


@dataclass(frozen=True)
class SelectorConfig:
    link: str = "article.product_pod h3 a"
    breadcrumb: str = "ul.breadcrumb li"
    name: SelectorChain = SelectorChain(
        detail=("div.product_main h1",),
        generic=("article.product_pod h3 a",),
    )
    price: SelectorChain = SelectorChain(
        detail=("div.product_main p.price_color",),
        generic=("article.product_pod .price_color",),
    )
    description: SelectorChain = SelectorChain(
        detail=("#product_description ~ p",),
        generic=("#product_description",),
    )
    image: SelectorChain = SelectorChain(
        detail=("div.item.active img", "div.product_main img"),
        generic=("article.product_pod img",),
    )

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> SelectorConfig:
        selectors = cls()
        changes: Dict[str, Any] = {}

        nested = section.get("selectors") or {}
        if not isinstance(nested, Mapping):
            raise ConfigError("'selectors' must be a mapping")
        for key, value in nested.items():
            if key in ("link", "breadcrumb"):
                changes[key] = str(value)
            elif key in ("name", "price", "description", "image"):
                changes[key] = SelectorChain.from_value(value)
            else:
                LOGGER.warning("Ignoring unknown selector field '%s'", key)

        for legacy_key, field_name in _LEGACY_SELECTOR_KEYS.items():
            if section.get(legacy_key):
                current = changes.get(field_name, getattr(selectors, field_name))
                changes[field_name] = dataclasses.replace(current, generic=_as_tuple(section[legacy_key]))

        link = section.get("product_link_selector") or section.get("product_name_selector")
        if link and "link" not in changes:
            changes["link"] = str(link)

        return dataclasses.replace(selectors, **changes) if changes else selectors


@dataclass(frozen=True)
class CrawlConfig:
    """Read-only settings shared by every worker of one crawl."""

    start_page: str
    base_url: str
    selectors: SelectorConfig = field(default_factory=SelectorConfig)
    concurrency: int = DEFAULT_CONCURRENCY
    delay_between_requests: float = DEFAULT_DELAY
    max_retries: int = DEFAULT_MAX_RETRIES
    media_dir: Path = Path(DEFAULT_MEDIA_DIR)
    agent_kind: Optional[str] = None
    site_complexity: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    deduplicate_links: bool = False
    max_name_collisions: int = DEFAULT_MAX_NAME_COLLISIONS

    def __post_init__(self) -> None:
        # Frozen dataclass: clamp through object.__setattr__
        object.__setattr__(self, "concurrency", max(1, _as_int(self.concurrency, "concurrency")))
        object.__setattr__(
            self,
            "delay_between_requests",
            max(0.0, _as_float(self.delay_between_requests, "delay_between_requests")),
        )
        object.__setattr__(self, "max_retries", max(1, _as_int(self.max_retries, "max_retries")))
        object.__setattr__(self, "timeout", _as_float(self.timeout, "timeout"))
        object.__setattr__(
            self,
            "max_name_collisions",
            max(1, _as_int(self.max_name_collisions, "max_name_collisions")),
        )
        object.__setattr__(self, "media_dir", Path(self.media_dir))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CrawlConfig:
        """Build from a merged config document or a bare web_scraping section."""
        if not isinstance(raw, Mapping):
            raise ConfigError("configuration must be a mapping")

        section = raw.get("web_scraping", raw)
        if not isinstance(section, Mapping):
            raise ConfigError("'web_scraping' must be a mapping")
        defaults = raw.get("default") or {}

        start_page = section.get("start_page")
        if not start_page:
            raise ConfigError("web_scraping.start_page is required")

        root_dir = Path(defaults.get("root_dir") or Path.cwd())
        media_name = section.get("media_dir") or defaults.get("media_dir") or DEFAULT_MEDIA_DIR
        media_dir = Path(media_name)
        if not media_dir.is_absolute():
            media_dir = root_dir / media_dir

        return cls(
            start_page=str(start_page),
            base_url=str(section.get("base_url") or ""),
            selectors=SelectorConfig.from_mapping(section),
            concurrency=section.get("concurrency", DEFAULT_CONCURRENCY),
            delay_between_requests=section.get("delay_between_requests", DEFAULT_DELAY),
            max_retries=section.get("max_retries", DEFAULT_MAX_RETRIES),
            media_dir=media_dir,
            agent_kind=section.get("agent_type") or section.get("agent_kind"),
            site_complexity=section.get("site_complexity"),
            timeout=section.get("timeout", DEFAULT_TIMEOUT),
            deduplicate_links=bool(section.get("deduplicate_links", False)),
            max_name_collisions=section.get("max_name_collisions", DEFAULT_MAX_NAME_COLLISIONS),
        )

    @classmethod
    def load(
        cls,
        default_path: Union[str, Path],
        overrides_dir: Optional[Union[str, Path]] = None,
    ) -> CrawlConfig:
        return cls.from_mapping(load_config(default_path, overrides_dir))

    def with_overrides(self, **changes: Any) -> CrawlConfig:
        """Copy with the given fields replaced; None values are ignored."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **changes) if changes else self


def load_config(
    default_path: Union[str, Path],
    overrides_dir: Optional[Union[str, Path]] = None,
    *,
    env_file: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """Load the default YAML file and merge every YAML file in overrides_dir.

    Parameters
    ----------
    default_path : str or Path
        Base configuration file (must exist)
    overrides_dir : str or Path, optional
        Directory whose *.yaml / *.yml files are merged on top, in name order
    env_file : str or Path, optional
        .env file to load before ${VAR} expansion (default: search upwards)

    Returns
    -------
    dict
        Merged configuration document
    """
    load_dotenv(env_file)

    path = Path(default_path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    merged = _read_yaml(path)

    if overrides_dir is not None:
        directory = Path(overrides_dir)
        if not directory.is_dir():
            raise ConfigError(f"Configuration directory not found: {directory}")
        files = sorted(list(directory.glob("*.yaml")) + list(directory.glob("*.yml")))
        for override in files:
            try:
                merged.update(_read_yaml(override))
            except (OSError, yaml.YAMLError, ConfigError) as exc:
                LOGGER.error("Error loading config file %s: %s", override, exc)

    merged = _expand_env(merged)
    _apply_env_overrides(merged)
    LOGGER.info("Configuration loaded from %s", path)
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    return value


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    section = config["web_scraping"] if isinstance(config.get("web_scraping"), dict) else config
    for env_name, key in ENV_OVERRIDES.items():
        if value := os.getenv(env_name):
            section[key] = value


def _as_tuple(value: Any) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value if item)
    raise ConfigError(f"invalid selector value: {value!r}")


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
