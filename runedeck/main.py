"""RuneDeck entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="RuneLite status on a Stream Deck")
    p.add_argument("--config", default=None, help="YAML config file path")
    p.add_argument("--http-port", type=int, default=None, help="State server port (default: 8085)")
    p.add_argument("--pull", action="store_true", help="Poll the source URL instead of serving POST /state")
    p.add_argument("--source-url", default=None, help="Status URL polled in pull mode")
    p.add_argument("--poll-interval-ms", type=int, default=None, help="Pull interval in ms")
    p.add_argument("--assets-dir", default=None, help="Directory holding the button PNGs")
    p.add_argument("--no-deck", action="store_true", help="Do not open a Stream Deck")
    p.add_argument("--log-level", default=None, help="Log level")
    return p.parse_args(argv)


def apply_overrides(cfg, args: argparse.Namespace):
    if args.http_port is not None:
        cfg.network.port = args.http_port
    if args.pull:
        cfg.source.mode = "pull"
    if args.source_url:
        cfg.source.url = args.source_url
    if args.poll_interval_ms is not None:
        cfg.source.poll_interval_ms = args.poll_interval_ms
    if args.assets_dir:
        cfg.render.assets_dir = args.assets_dir
    if args.no_deck:
        cfg.deck.enabled = False
    if args.log_level:
        cfg.logging.level = args.log_level
    return cfg


async def async_main(cfg) -> None:
    from runedeck.plugin import Plugin

    plugin = Plugin(cfg)
    await plugin.run()


def main() -> None:
    from runedeck.config import load_config

    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, (args.log_level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    cfg = apply_overrides(load_config(args.config), args)
    logging.getLogger().setLevel(getattr(logging, cfg.logging.level.upper(), logging.INFO))
    try:
        asyncio.run(async_main(cfg))
    except KeyboardInterrupt:
        pass
