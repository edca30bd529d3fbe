"""Core utilities shared by the FileMaker services and the HTTP layer.

Modules in this package hold configuration, error types, HTTP client
construction, middleware and small validation helpers.
"""
