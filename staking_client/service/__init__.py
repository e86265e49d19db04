from . import transaction_service

__all__ = [
    "transaction_service",
]
