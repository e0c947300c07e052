"""
Business modules built on the supply kernel and engines.

- purchasing: suppliers, products, purchase orders, goods receipts
- discounts: scheduled discount periods
"""
