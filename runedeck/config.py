"""RuneDeck configuration with defaults, loadable from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)


@dataclass
class NetworkConfig:
    host: str = "127.0.0.1"
    port: int = 8085
    port_retries: int = 10


@dataclass
class SourceConfig:
    mode: str = "push"  # "push" | "pull"
    url: str = "http://localhost:8085/state"
    poll_interval_ms: int = 200
    timeout_ms: int = 1000


@dataclass
class RenderConfig:
    assets_dir: str = "assets"
    canvas_size: int = 144


@dataclass
class DeckKeyConfig:
    key: int
    kind: str
    settings: dict = field(default_factory=dict)


@dataclass
class DeckConfig:
    enabled: bool = True
    brightness: int = 60
    keys: list[DeckKeyConfig] = field(default_factory=list)


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class RuneDeckConfig:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    deck: DeckConfig = field(default_factory=DeckConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def pull(self) -> bool:
        return self.source.mode == "pull"


def _parse_keys(raw: list) -> list[DeckKeyConfig]:
    keys = []
    for entry in raw or []:
        if not isinstance(entry, dict) or "key" not in entry or "kind" not in entry:
            log.warning("config: ignoring deck key entry %r", entry)
            continue
        keys.append(DeckKeyConfig(
            key=int(entry["key"]),
            kind=str(entry["kind"]),
            settings=dict(entry.get("settings") or {}),
        ))
    return keys


def load_config(path: str | Path | None = None) -> RuneDeckConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        return RuneDeckConfig()

    path = Path(path)
    if not path.exists():
        log.warning("config file not found: %s, using defaults", path)
        return RuneDeckConfig()

    try:
        import yaml  # type: ignore[import-untyped]

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        cfg = RuneDeckConfig()
        for section_name in ("network", "source", "render", "logging"):
            if section_name in raw:
                section = getattr(cfg, section_name)
                for k, v in raw[section_name].items():
                    setattr(section, k, v)
        deck = raw.get("deck") or {}
        for k, v in deck.items():
            if k == "keys":
                cfg.deck.keys = _parse_keys(v)
            else:
                setattr(cfg.deck, k, v)

        log.info("config loaded from %s", path)
        return cfg
    except Exception as e:
        log.warning("config load error: %s, using defaults", e)
        return RuneDeckConfig()
