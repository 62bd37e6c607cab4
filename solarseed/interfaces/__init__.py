"""Command line entry points."""

__all__ = ["cli", "common"]
