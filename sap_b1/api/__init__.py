"""
sap_b1.api - Optional REST API Gateway
=======================================

This module provides an optional FastAPI-based REST gateway
exposing the Service Layer client over HTTP.

Usage
-----
>>> from sap_b1.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn sap_b1.api:app

Or run directly:
>>> python -m sap_b1.api

"""

from pathlib import Path

from dotenv import load_dotenv

# Load .env before building the default app
env_path = Path.cwd() / ".env"
if not env_path.exists():
    env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from sap_b1.api.gateway import create_app, ServiceLayerGateway

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "ServiceLayerGateway",
    "app",
]
