"""
Tests para el módulo de Contactos

Cubre la tarifa asociada a cada tipo de tercero y el borrado lógico.
"""

from sqlalchemy import select

from app.common.mixins import live
from app.modules.contacts.models import Customer, Supplier
from app.modules.tariffs.models import TariffType


class TestSupplierModel:
    """Tests para el modelo Supplier"""

    def test_supplier_without_tariff(self, sample_supplier):
        assert sample_supplier.tariff_id is None
        assert sample_supplier.tariff is None

    def test_supplier_tariff_is_buy_tariff(self, db_session, sample_supplier, sample_article, tariff_factory):
        tariff = tariff_factory(TariffType.BUY, {sample_article: "4"})
        sample_supplier.buy_tariff_id = tariff.id
        db_session.commit()

        assert sample_supplier.tariff_id == tariff.id
        assert sample_supplier.tariff.type == TariffType.BUY
        assert len(sample_supplier.tariff.items) == 1


class TestCustomerModel:
    """Tests para el modelo Customer"""

    def test_customer_tariff_is_sell_tariff(self, db_session, sample_customer, sample_article, tariff_factory):
        tariff = tariff_factory(TariffType.SELL, {sample_article: "9"})
        sample_customer.sell_tariff_id = tariff.id
        db_session.commit()

        assert sample_customer.tariff is not None
        assert sample_customer.tariff.id == tariff.id

    def test_soft_delete_and_restore(self, db_session, company_id, sample_customer):
        sample_customer.soft_delete()
        db_session.commit()

        assert sample_customer.is_deleted
        assert not sample_customer.is_active
        query = select(Customer).where(Customer.company_id == company_id, live(Customer))
        assert db_session.execute(query).scalars().all() == []

        sample_customer.restore()
        db_session.commit()

        assert db_session.execute(query).scalars().all() == [sample_customer]


class TestTenantIsolation:

    def test_contacts_are_scoped_by_company(self, db_session, other_company_id, sample_supplier):
        query = select(Supplier).where(Supplier.company_id == other_company_id, live(Supplier))

        assert db_session.execute(query).scalars().all() == []
