"""Video quiz tracker backend.

``app.main:app`` is the ASGI entry point; importing the package alone does
not build the FastAPI application."""
