"""Page proxy — fetch a remote page and rewrite its relative references."""

__version__ = "0.1.0"
