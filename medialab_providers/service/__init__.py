"""HTTP service exposing the provider layer (FastAPI)."""
