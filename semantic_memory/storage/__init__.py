"""
Two-tier embedding storage.

Responsibilities:
- Keep an authoritative in-memory mirror of every embedding record.
- Persist records to a swappable durable backend (SQLite or in-process).
- Reload the mirror from the durable backend once per process.
- Demote durable-write failures to logged warnings.
"""
