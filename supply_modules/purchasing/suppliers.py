"""
Product-to-supplier lookup.

``SupplierIndex`` is built once from reference data and answers "who
supplies this product" without scanning every supplier's product list on
each lookup. Suppliers keep their registration order, so the primary
supplier of a product is the first registered supplier that lists it.
"""

from __future__ import annotations

from collections.abc import Iterable

from supply_modules.purchasing.models import Supplier


class SupplierIndex:
    """Immutable product -> suppliers index."""

    def __init__(self, suppliers: Iterable[Supplier]):
        self._suppliers: dict[str, Supplier] = {}
        self._by_product: dict[str, list[Supplier]] = {}
        for supplier in suppliers:
            self._suppliers[str(supplier.id)] = supplier
            for product_id in dict.fromkeys(str(p) for p in supplier.product_ids):
                self._by_product.setdefault(product_id, []).append(supplier)

    def __len__(self) -> int:
        return len(self._suppliers)

    def __contains__(self, supplier_id: object) -> bool:
        return str(supplier_id) in self._suppliers

    def get(self, supplier_id: str) -> Supplier | None:
        return self._suppliers.get(str(supplier_id))

    def suppliers_for(self, product_id: str) -> tuple[Supplier, ...]:
        return tuple(self._by_product.get(str(product_id), ()))

    def primary_supplier_for(self, product_id: str) -> Supplier | None:
        found = self._by_product.get(str(product_id))
        return found[0] if found else None

    def supplies(self, supplier_id: str, product_id: str) -> bool:
        return any(
            str(s.id) == str(supplier_id) for s in self.suppliers_for(product_id)
        )

    def products_without_supplier(self, product_ids: Iterable[str]) -> tuple[str, ...]:
        return tuple(str(p) for p in product_ids if str(p) not in self._by_product)
