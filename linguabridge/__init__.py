"""Universal translation pipeline for multilingual chat."""

__version__ = "0.1.0"
