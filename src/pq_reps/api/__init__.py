"""HTTP API -- FastAPI app factory (gateway.create_app), routes, request models, rate limiting."""
