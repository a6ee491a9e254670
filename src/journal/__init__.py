"""Append-only JSONL journal of order workflow events."""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
