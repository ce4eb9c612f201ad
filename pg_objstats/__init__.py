"""PostgreSQL object statistics collector."""

__version__ = "1.0.0"
