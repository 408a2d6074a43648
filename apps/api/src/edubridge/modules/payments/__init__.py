"""
Payments module - Checkout and settlement of selected tuitions.
"""

from edubridge.modules.payments.models import PaymentRecord

__all__ = ["PaymentRecord"]
