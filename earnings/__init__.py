from earnings.errors import EarningsError
from earnings.services import EarningsService

__all__ = ["EarningsError", "EarningsService"]
