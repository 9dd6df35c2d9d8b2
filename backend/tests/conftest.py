"""
Pytest fixtures for the billing backend tests.

Every test gets its own volatile database file and asset folders under
tmp_path. Apps built with make_app() inside one test share the volatile
database, which is how a restart (page reload) is simulated.
"""

import pytest

from billing import create_app
from billing.storage import get_storage


@pytest.fixture
def bundled_dir(tmp_path):
    """Read-only bundled JSON files (the durable source before a folder grant)."""
    path = tmp_path / "bundled"
    path.mkdir()
    return path


@pytest.fixture
def asset_folder(tmp_path):
    """Folder the user grants for durable writes."""
    path = tmp_path / "asset"
    path.mkdir()
    return path


@pytest.fixture
def make_app(tmp_path, bundled_dir):
    def _make(**overrides):
        config = {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'volatile.sqlite3'}",
            'BUNDLED_ASSET_DIR': str(bundled_dir),
            'FOLDER_ACCESS_SUPPORTED': True,
            'SEED_DEFAULT_PRODUCTS': False,
        }
        config.update(overrides)
        return create_app(config)
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def storage(app):
    with app.app_context():
        yield get_storage()


def make_product(barcode: str = "2001", **overrides) -> dict:
    product = {
        "barcode": barcode,
        "name": f"Product {barcode}",
        "category": "Grocery",
        "costPrice": 40.0,
        "sellPrice": 50.0,
        "quantityOnHand": 10,
        "unit": "pcs",
        "taxPercent": 5,
        "description": "",
        "imageURL": None,
    }
    product.update(overrides)
    return product
