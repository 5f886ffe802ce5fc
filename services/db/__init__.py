"""
Database Package

Database access layer for the Discord bot.
"""

from .database import Database
from .repository import Collection, RecordStore, encode_json, parse_json_dict
from .schema import init_schema

__all__ = [
    "Collection",
    "Database",
    "RecordStore",
    "encode_json",
    "init_schema",
    "parse_json_dict",
]
