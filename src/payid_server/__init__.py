"""PayID server — directory of PayIDs to payment-network addresses."""

__version__ = "0.1.0"
