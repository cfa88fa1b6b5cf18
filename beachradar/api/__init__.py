"""HTTP API for Beach Radar (FastAPI)."""
