"""
Shared, cross-cutting code for the package.

`core/` holds small building blocks that the mapper, middleware and server
use (Mongo wiring, settings, identifiers). Keep resource-specific logic in
`crud/`.
"""
