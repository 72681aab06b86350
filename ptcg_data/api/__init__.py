"""
HTTP surface (FastAPI).

Usage:
    from ptcg_data.api import create_app
"""

from ptcg_data.api.app import create_app

__all__ = ["create_app"]
