"""HTTP API for kitchenledger (FastAPI app + uvicorn launcher)."""
