"""News article lifecycle and metadata-versioning engine."""

__version__ = "0.1.0"
