"""
Fixtures compartidas para los tests

Cada test trabaja sobre su propia base de datos SQLite en fichero (tmp_path),
de modo que varias sesiones pueden verse entre sí igual que en PostgreSQL.
"""

import os

# Antes de importar la aplicación: sin PostgreSQL ni create_all al importar app.main
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from uuid import uuid4
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database.database import Base, build_engine, get_db
from app.main import app
from app.modules.articles.models import Article, Family
from app.modules.contacts.models import Customer, Supplier
from app.modules.tariffs.models import Tariff, TariffItem


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'gesfer_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient con get_db apuntando a la base de datos del test"""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===== DATOS DE EJEMPLO =====

@pytest.fixture
def company_id():
    return uuid4()


@pytest.fixture
def other_company_id():
    return uuid4()


@pytest.fixture
def sample_family(db_session, company_id):
    family = Family(company_id=company_id, name="Tornillería", iva_percentage=Decimal("21"))
    db_session.add(family)
    db_session.commit()
    db_session.refresh(family)
    return family


@pytest.fixture
def article_factory(db_session, company_id, sample_family):
    """Crea artículos persistidos; por defecto en la empresa y familia de ejemplo"""

    def create(code, stock="0", buy_price="5", sell_price="10", family=None, company=None, name=None):
        family = family or sample_family
        article = Article(
            company_id=company or company_id,
            family_id=family.id,
            code=code,
            name=name or f"Artículo {code}",
            buy_price=Decimal(buy_price),
            sell_price=Decimal(sell_price),
            stock=Decimal(stock)
        )
        db_session.add(article)
        db_session.commit()
        db_session.refresh(article)
        return article

    return create


@pytest.fixture
def sample_article(article_factory):
    """Stock 10, compra 5, venta 10"""
    return article_factory("A001", stock="10", buy_price="5", sell_price="10", name="Tornillo M6")


@pytest.fixture
def second_article(article_factory):
    """Stock 3, compra 2, venta 4"""
    return article_factory("A002", stock="3", buy_price="2", sell_price="4", name="Tuerca M6")


@pytest.fixture
def sample_supplier(db_session, company_id):
    supplier = Supplier(company_id=company_id, name="Suministros Norte S.L.", tax_id="B12345678")
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def sample_customer(db_session, company_id):
    customer = Customer(company_id=company_id, name="Construcciones Sur S.A.", tax_id="A87654321")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def tariff_factory(db_session, company_id):
    """Crea una tarifa con precios por artículo: tariff_factory(TariffType.SELL, {article: "7.5"})"""

    def create(tariff_type, prices, company=None):
        tariff = Tariff(company_id=company or company_id, name=f"Tarifa {tariff_type.name}", type=tariff_type)
        for article, price in prices.items():
            tariff.items.append(TariffItem(article_id=article.id, price=Decimal(price)))
        db_session.add(tariff)
        db_session.commit()
        db_session.refresh(tariff)
        return tariff

    return create


@pytest.fixture
def company_headers(company_id):
    return {"X-Company-ID": str(company_id)}
