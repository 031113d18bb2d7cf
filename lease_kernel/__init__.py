"""
Lease Kernel

Shared foundations for the lease computation engine:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
- Decimal coercion and fixed-point formatting
- Injectable clock
"""

__version__ = "0.1.0"
