"""Library Admin - Services Package

This package contains the client side of the Remote Catalog Service:
- HTTP client abstraction
- Catalog service client and its result types
"""
