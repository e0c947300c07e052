"""Tests for engine and session helpers (supply_kernel/db/engine.py)."""

import pytest
from sqlalchemy import select

from supply_kernel.db.engine import get_engine, get_session, session_scope
from supply_modules.purchasing.orm import SupplierModel


class TestSessionScope:

    def test_commits_on_normal_exit(self, session, acme, actor_id):
        with session_scope() as scoped:
            scoped.add(SupplierModel.from_dto(acme, created_by_id=actor_id))

        stored = session.scalars(select(SupplierModel).where(SupplierModel.code == "ACME")).one()
        assert stored.name == "Acme Textiles"

    def test_rolls_back_and_reraises(self, session, bolt, actor_id, captured_logs):
        with pytest.raises(RuntimeError, match="abort"):
            with session_scope() as scoped:
                scoped.add(SupplierModel.from_dto(bolt, created_by_id=actor_id))
                scoped.flush()
                raise RuntimeError("abort")

        assert session.scalars(select(SupplierModel)).all() == []
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())

    def test_sqlite_dialect(self, session):
        assert get_engine().dialect.name == "sqlite"


class TestUninitialized:

    def test_get_session_requires_engine(self):
        from supply_kernel.db import engine as engine_module

        saved = engine_module._SessionFactory
        engine_module._SessionFactory = None
        try:
            with pytest.raises(RuntimeError, match="not initialized"):
                get_session()
        finally:
            engine_module._SessionFactory = saved
