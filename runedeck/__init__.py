"""RuneLite status orbs and shortcuts for Stream Deck keys."""

__version__ = "0.1.0"
