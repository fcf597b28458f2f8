"""Remember, recall and reconnect to game servers."""

__version__ = "0.1.0"
