"""
Caterer catalog access.

Responsibilities:
- Define the read-only CatererRecord schema.
- Fetch a fresh point-in-time snapshot of every caterer per request.
- Report storage problems as ``CatalogFetchError``.
"""
