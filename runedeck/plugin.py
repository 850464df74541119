"""Wires the store, update driver, button kinds, registries and deck host."""

from __future__ import annotations

import asyncio
import logging

from runedeck.actions.base import ButtonKind
from runedeck.actions.buttons import MapButton, PrayerButton, TabButton
from runedeck.actions.meters import HealthMeter, PrayerMeter, RunMeter, SpecialAttackMeter
from runedeck.api.http_server import StateServer
from runedeck.config import RuneDeckConfig
from runedeck.core.poller import StatePoller
from runedeck.core.registry import ButtonRegistry
from runedeck.core.store import StateStore
from runedeck.devices.keyboard import KeyboardSink, PynputKeyboard
from runedeck.devices.state_client import StateClient
from runedeck.devices.streamdeck_host import StreamDeckHost
from runedeck.render.assets import AssetStore

log = logging.getLogger(__name__)


def build_kinds(assets: AssetStore, keyboard: KeyboardSink, size: int) -> list[ButtonKind]:
    return [
        HealthMeter(assets, size=size),
        PrayerMeter(assets, size=size),
        RunMeter(assets, size=size),
        SpecialAttackMeter(assets, size=size),
        PrayerButton(assets, size=size),
        TabButton(assets, keyboard, size=size),
        MapButton(assets, keyboard, size=size),
    ]


class Plugin:
    """Everything one RuneDeck process runs.

    Push mode serves ``POST /state``; pull mode polls ``source.url`` instead.
    Either way updates land in the one StateStore the registries watch.
    """

    def __init__(
        self,
        cfg: RuneDeckConfig,
        *,
        keyboard: KeyboardSink | None = None,
        assets: AssetStore | None = None,
        host: StreamDeckHost | None = None,
    ) -> None:
        self.cfg = cfg
        self.store = StateStore()
        self.assets = assets or AssetStore(cfg.render.assets_dir)
        self.keyboard = keyboard or PynputKeyboard()

        self.client: StateClient | None = None
        self.poller: StatePoller | None = None
        self.server: StateServer | None = None
        if cfg.pull:
            self.client = StateClient(cfg.source.url, timeout_s=cfg.source.timeout_ms / 1000.0)
            self.poller = StatePoller(
                self.store, self.client, interval_s=cfg.source.poll_interval_ms / 1000.0
            )
        else:
            self.server = StateServer(
                self.store,
                host=cfg.network.host,
                port=cfg.network.port,
                port_retries=cfg.network.port_retries,
            )

        self.registries: dict[str, ButtonRegistry] = {
            kind.name: ButtonRegistry(kind, self.store, self.poller)
            for kind in build_kinds(self.assets, self.keyboard, cfg.render.canvas_size)
        }

        if host is None and cfg.deck.enabled:
            host = StreamDeckHost(cfg.deck.keys, self.registries, brightness=cfg.deck.brightness)
        self.host = host
        self._stop = asyncio.Event()

    async def start(self) -> None:
        if self.client is not None:
            await self.client.start()
        if self.host is not None:
            await self.host.start()
        log.info("plugin: running (%s mode, %d kinds)",
                 "pull" if self.cfg.pull else "push", len(self.registries))

    async def run(self) -> None:
        await self.start()
        try:
            if self.server is not None:
                await self.server.serve()
            else:
                await self._stop.wait()
        finally:
            await self.close()

    def request_stop(self) -> None:
        self._stop.set()
        if self.server is not None:
            self.server.stop()

    async def close(self) -> None:
        log.info("plugin: shutting down")
        if self.host is not None:
            await self.host.stop()
        for registry in self.registries.values():
            await registry.close()
        if self.poller is not None:
            await self.poller.stop()
        if self.client is not None:
            await self.client.stop()
