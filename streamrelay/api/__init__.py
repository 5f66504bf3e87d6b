"""FastAPI application for the streamrelay server."""
