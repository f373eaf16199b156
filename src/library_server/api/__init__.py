"""System HTTP endpoints for the library server."""
