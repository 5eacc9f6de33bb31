"""MedGenius - AI-assisted healthcare lookups with a minimal auth backend."""

__version__ = "0.1.0"
