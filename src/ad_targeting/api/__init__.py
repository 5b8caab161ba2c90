"""HTTP transport layer: FastAPI application, routes and dependencies."""
