"""
Request dependencies shared by the routers.
"""

from __future__ import annotations

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """The store handle the app was created (or started) with."""
    return request.app.state.session_factory
