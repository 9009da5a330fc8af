"""Storefront server layer: HTTP, storage, catalog and assistant tools."""
