"""Pytest configuration and shared fixtures."""

import os

# Set test settings BEFORE any imports from src
# This ensures the engine and settings use the test configuration
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["PAYMENT_ENCRYPTION_KEY"] = "test-master-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.models import Base, ProviderType  # noqa: E402
from src.schemas.payment_providers import BindingCreate, ProviderCreate  # noqa: E402
from src.services import build_engine, init_db  # noqa: E402
from src.services.cooperative_provider_service import CooperativeProviderService  # noqa: E402
from src.services.credential_vault import CredentialVault  # noqa: E402
from src.services.provider_catalog_service import ProviderCatalogService  # noqa: E402


@pytest.fixture
def db_session():
    """Provide a test database session with all tables created."""
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="session")
def vault() -> CredentialVault:
    """Vault with a fixed test master secret (key derived once per test run)."""
    return CredentialVault("test-master-secret")


@pytest.fixture
def catalog(db_session) -> ProviderCatalogService:
    return ProviderCatalogService(db_session)


@pytest.fixture
def bindings(db_session, vault) -> CooperativeProviderService:
    return CooperativeProviderService(db_session, vault)


@pytest.fixture
def mercadopago(catalog):
    """Catalog entry for MercadoPago."""
    return catalog.create(
        ProviderCreate(
            code="MP",
            name="MercadoPago",
            type=ProviderType.MERCADOPAGO,
            description="Gateway for cards and cash",
            countries=["AR"],
        )
    )


@pytest.fixture
def configured_binding(bindings, mercadopago):
    """coop-1 bound to MercadoPago as principal provider."""
    return bindings.configure(
        "coop-1",
        BindingCreate(provider_id=mercadopago.id, access_token="secret123", is_principal=True),
    )


@pytest.fixture
def client(db_session, vault):
    """Provide a FastAPI test client backed by the test session and vault."""
    from src.api.payment_providers import get_vault
    from src.main import app
    from src.services import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_vault] = lambda: vault
    yield TestClient(app)
    app.dependency_overrides.clear()
