"""Signed outbound webhook delivery with retries and a delivery ledger."""

__version__ = "1.0.0"
