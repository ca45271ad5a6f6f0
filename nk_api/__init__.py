"""JSON API for negative keyword provisioning."""

from .app import create_app

__all__ = ['create_app']
