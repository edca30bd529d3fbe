"""Read-only browser for contacts, products and sales stored in a FileMaker database."""

__version__ = "1.0.0"
