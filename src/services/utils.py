"""Shared utilities for service layer operations."""


def escape_like(value: str) -> str:
    r"""
    Escape special LIKE characters for safe use in LIKE patterns.

    LIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so they match literally. Queries must pass
    `escape="\\"` because SQLite has no default escape character.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def dedupe(items: list) -> list:
    """Remove duplicates, keeping the first occurrence's position."""
    return list(dict.fromkeys(items))
