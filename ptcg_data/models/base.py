"""
SQLAlchemy 2.0 DeclarativeBase for PTCG Data.

All models inherit from this Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all PTCG Data database models."""
    pass
