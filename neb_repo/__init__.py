"""Local mirror of the Nebula mod repository."""

__version__ = "0.3.0"
