"""Database package."""

from fulfillment.database.mongodb import MongoDB, mongodb

__all__ = [
    "MongoDB",
    "mongodb",
]
