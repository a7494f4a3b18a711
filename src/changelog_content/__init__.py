"""Content pipeline for block-tree changelog and post documents."""

__version__ = "0.1.0"
