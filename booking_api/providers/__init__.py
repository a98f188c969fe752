"""Payment-augmented scheduling channels."""

from .base import PaymentAugmentedResult, PaymentChannel, PaymentTerms

__all__ = ["PaymentAugmentedResult", "PaymentChannel", "PaymentTerms"]
