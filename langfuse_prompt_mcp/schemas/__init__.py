from .base import BaseSchema, ResponseSchema

__all__ = [
    "BaseSchema",
    "ResponseSchema",
]
