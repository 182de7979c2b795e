"""Configuration, prompt policy, artifact storage, WSGI auth middleware, metrics and WebSocket handlers for an agent task service."""

__version__ = "0.1.0"