import os
import sys
import tempfile
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "storefront-test.db")
os.environ["JWT_SECRET"] = "storefront-test-secret-0123456789abcdef"
os.environ.pop("JWT_ISSUER", None)

import pytest
from storefront.core.database import Base, engine
from storefront.models import cart_models, inventory_models, order_models  # noqa: F401


@pytest.fixture(autouse=True)
def setup_db():
	Base.metadata.create_all(bind=engine)
	yield
	Base.metadata.drop_all(bind=engine)
