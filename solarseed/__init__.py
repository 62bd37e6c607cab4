"""Solar unit energy records: synthetic series generation, seeding and analytics."""

__all__ = [
    "config",
    "generation",
    "infrastructure",
    "processing",
    "reporting",
    "interfaces",
]
