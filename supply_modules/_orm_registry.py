"""
Module ORM Registry (``supply_modules._orm_registry``).

Ensure every module-level SQLAlchemy ORM model is imported so that
``Base.metadata`` holds its table before tables are created.
``supply_kernel.db.engine.create_tables`` calls ``import_all_orm_models``.
"""


def import_all_orm_models() -> None:
    """Import every ``supply_modules.*.orm`` module. Idempotent."""
    import supply_modules.discounts.orm  # noqa: F401
    import supply_modules.purchasing.orm  # noqa: F401
