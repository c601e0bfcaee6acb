from seed_catalog import CUSTOMERS, MOTORCYCLES, PRODUCTS, seed_catalog

from arbati.models.customer import Customer
from arbati.models.motorcycle import Motorcycle, MotorcycleStatus
from arbati.models.product import Product
from arbati.models.user import User, UserRole


def test_seed_is_idempotent(db, capsys):
    seed_catalog()
    seed_catalog()

    assert db.query(Product).count() == len(PRODUCTS)
    assert db.query(Motorcycle).count() == len(MOTORCYCLES)
    assert db.query(Customer).count() == len(CUSTOMERS)
    assert db.query(Motorcycle).filter(Motorcycle.status == MotorcycleStatus.IN_STOCK).count() == len(MOTORCYCLES)

    # first start bootstraps a developer account
    assert db.query(User).one().role == UserRole.DEVELOPER
    assert "DEFAULT ADMIN USER CREATED" in capsys.readouterr().out
