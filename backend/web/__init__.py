"""FastAPI web adapter: server-rendered catalog pages and the admin area."""
