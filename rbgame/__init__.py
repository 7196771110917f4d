"""3D replay viewer for forklift robot game logs: log parsing, OBJ models and an OpenGL window."""

__version__ = "0.1.0"
__all__ = ["__version__"]