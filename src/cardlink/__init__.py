"""CardLink: digital profile cards with link tracking and view analytics."""

__version__ = "1.0.0"
