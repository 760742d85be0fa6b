"""TestArena – bilingual PDF mock-test ingestion, scoring and ranking."""

__version__ = "0.1.0"
