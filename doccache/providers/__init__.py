"""Concrete adapters for the interfaces in ``doccache.interfaces``."""
