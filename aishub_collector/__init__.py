"""AISHub data collector: polls AISHub and keeps one CSV series per vessel."""

__version__ = "0.1.0"
