"""HTTP host for transcript views (FastAPI app, pydantic models, view store)."""
