"""
Transactions Domain

In-memory transaction store with on-demand exports.
"""

__all__ = ["store"]
