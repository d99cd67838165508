"""
Central import point for the SQLAlchemy models.

Importing the models here registers them with the Base metadata before
`create_all` or any query runs.
"""
from .base import Base
from .photo import Photo


__all__ = [
    "Base",
    "Photo",
]
