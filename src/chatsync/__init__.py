"""chatsync - incremental sync client for Matrix-style chat servers."""

__version__ = "0.1.0"
