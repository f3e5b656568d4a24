"""Docker inventory agent - collects OS packages and files from containers."""

__version__ = "1.0.0"
