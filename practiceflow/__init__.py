"""PracticeFlow: practice management API for professional services firms."""

__version__ = "0.1.0"
