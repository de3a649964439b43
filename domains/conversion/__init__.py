"""
Conversion Domain

Record codec shared by the transform pipeline, the API bridge and exports:
- codec.py - csv / json / xml <-> list of ordered records
- errors.py - error taxonomy for the whole core
"""

__all__ = ["codec", "errors"]
