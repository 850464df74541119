"""Tests for StreamDeckHost against an in-memory deck."""

from __future__ import annotations

import asyncio

import pytest

from runedeck.actions.buttons import MapButton
from runedeck.actions.meters import HealthMeter
from runedeck.config import DeckKeyConfig
from runedeck.core.registry import ButtonRegistry
from runedeck.core.state import Hitpoints, Player, StateSnapshot
from runedeck.core.store import StateStore
from runedeck.devices.streamdeck_host import StreamDeckHost


class FakeDeck:
    def __init__(self, keys: int = 6) -> None:
        self._keys = keys
        self.opened = False
        self.closed = False
        self.brightness: int | None = None
        self.images: dict[int, object] = {}
        self.callback = None

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> bool:
        return False

    def open(self) -> None:
        self.opened = True

    def reset(self) -> None:
        self.images.clear()

    def close(self) -> None:
        self.closed = True

    def set_brightness(self, value: int) -> None:
        self.brightness = value

    def key_count(self) -> int:
        return self._keys

    def deck_type(self) -> str:
        return "Fake Deck"

    def key_image_format(self) -> dict:
        return {"size": (72, 72), "format": "JPEG"}

    def set_key_callback(self, cb) -> None:
        self.callback = cb

    def set_key_image(self, key: int, image) -> None:
        self.images[key] = image


async def wait_until(pred, timeout: float = 1.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not pred():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def store() -> StateStore:
    return StateStore(StateSnapshot(player=Player("a", 1), hp=Hitpoints(99, 99)))


@pytest.fixture
def registries(assets, keyboard, store):
    return {
        "health": ButtonRegistry(HealthMeter(assets), store),
        "map": ButtonRegistry(MapButton(assets, keyboard), store),
    }


def make_host(deck, registries, layout=None) -> StreamDeckHost:
    layout = layout or [
        DeckKeyConfig(0, "health", {"showNumbers": False}),
        DeckKeyConfig(1, "map"),
        DeckKeyConfig(2, "bogus"),
        DeckKeyConfig(99, "health"),
        DeckKeyConfig(1, "health"),
    ]
    return StreamDeckHost(
        layout,
        registries,
        brightness=40,
        enumerate_decks=lambda: [deck] if deck is not None else [],
        to_native=lambda _deck, image: image,
    )


@pytest.mark.asyncio
async def test_start_binds_layout_and_pushes_images(registries, store) -> None:
    deck = FakeDeck()
    host = make_host(deck, registries)

    assert await host.start()
    assert host.connected
    assert deck.opened and deck.brightness == 40
    assert sorted(host.keys) == [0, 1]
    assert sorted(deck.images) == [0, 1]
    assert deck.images[0].size == (72, 72)
    assert deck.images[0].mode == "RGB"
    assert store.subscriber_count == 1
    assert len(registries["health"]) == 1

    await host.stop()
    assert deck.closed
    assert not host.connected
    assert store.subscriber_count == 0
    assert len(registries["map"]) == 0


@pytest.mark.asyncio
async def test_state_update_reaches_the_key(registries, store) -> None:
    deck = FakeDeck()
    host = make_host(deck, registries)
    await host.start()
    before = deck.images[0]

    store.replace(StateSnapshot(player=Player("a", 1), hp=Hitpoints(10, 99)))
    await registries["health"].drain()
    assert deck.images[0] is not before
    await host.stop()


@pytest.mark.asyncio
async def test_key_callbacks_dispatch_press_and_release(registries, keyboard, palette) -> None:
    deck = FakeDeck()
    host = make_host(deck, registries)
    await host.start()

    deck.callback(deck, 1, True)
    await wait_until(
        lambda: deck.images[1].getpixel((36, 36)) == palette["map-button/map_orb_highlight.png"]
    )
    deck.callback(deck, 1, False)
    await wait_until(lambda: keyboard.sent == [["ctrl", "m"]])
    assert deck.images[1].getpixel((36, 36)) == palette["map-button/map_orb.png"]

    # unbound keys are ignored
    deck.callback(deck, 5, True)
    await asyncio.sleep(0.02)
    assert keyboard.sent == [["ctrl", "m"]]
    await host.stop()


@pytest.mark.asyncio
async def test_no_deck_found(registries, store) -> None:
    host = make_host(None, registries)
    assert not await host.start()
    assert not host.connected
    assert store.subscriber_count == 0
    await host.stop()


@pytest.mark.asyncio
async def test_write_without_deck_raises(registries) -> None:
    host = make_host(None, registries)
    with pytest.raises(RuntimeError):
        await host.write_image(0, None)
