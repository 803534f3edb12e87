"""ZenPriority: a personal task board with AI-assisted ordering."""

__version__ = "0.1.0"
