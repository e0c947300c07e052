"""
Supply Kernel

Pure core of the supplier procurement workflow:
- Variant-keyed line items with duplicate rejection
- Typed outcomes instead of thrown validation errors
- Closed date-interval primitives
- Structured JSON logging
"""

__version__ = "0.1.0"
