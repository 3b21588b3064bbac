"""roomchat: single-room chat backend with a realtime push channel."""

__version__ = "1.0.0"
