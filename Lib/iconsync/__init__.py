"""Keep a published icon package in sync with an upstream icon repository."""

__version__ = "0.1.0"
