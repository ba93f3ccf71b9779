"""HTTP trigger for sync passes."""

from .api import build_router, create_app

__all__ = ['build_router', 'create_app']
