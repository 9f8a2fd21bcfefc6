"""RC Gateway - vehicle registration lookups with a relational read-through cache."""

__version__ = "0.1.0"
