"""Seed a demo catalogue: categories, products, motorcycles and a few customers."""
from decimal import Decimal

from arbati.db.init_db import init_db
from arbati.db.session import SessionLocal
from arbati.models.customer import Address, Customer, CustomerType
from arbati.models.motorcycle import Motorcycle
from arbati.models.product import Category, Product
from arbati.models.user import User

CATEGORIES = [
    {"name": "Engine Parts", "name_ar": "قطع المحرك", "name_ku": "پارچەکانی بزوێنەر"},
    {"name": "Tyres", "name_ar": "إطارات", "name_ku": "تایە"},
    {"name": "Oils", "name_ar": "زيوت", "name_ku": "ڕۆن"},
]

PRODUCTS = [
    {"name": "Spark Plug", "name_ku": "شەمعە", "sku": "SP-001", "category": "Engine Parts",
     "mufrad": 5000, "jumla": 4000, "rmb": 12, "stock": 240},
    {"name": "Chain Kit 428", "name_ku": "زنجیر ٤٢٨", "sku": "CK-428", "category": "Engine Parts",
     "mufrad": 35000, "jumla": 30000, "rmb": 85, "stock": 40},
    {"name": "Front Tyre 2.75-18", "name_ku": "تایەی پێشەوە", "sku": "TY-275", "category": "Tyres",
     "mufrad": 45000, "jumla": 39000, "rmb": 110, "stock": 8},
    {"name": "Engine Oil 1L", "name_ku": "ڕۆنی بزوێنەر", "sku": "OIL-1L", "category": "Oils",
     "mufrad": 8000, "jumla": 6500, "rmb": 20, "stock": 120},
]

MOTORCYCLES = [
    {"name": "Haojue 150", "sku": "MC-HJ150", "retail": 1450, "wholesale": 1300, "rmb": 7200, "stock": 6},
    {"name": "Kawasaki Z125", "sku": "MC-KZ125", "retail": 3200, "wholesale": 2950, "rmb": 15800, "stock": 2},
]

CUSTOMERS = [
    {"name": "Karwan Motors", "sku": "C-0001", "type": CustomerType.COMPANY, "city": "Erbil"},
    {"name": "Ahmed Ali", "name_ar": "أحمد علي", "sku": "C-0002", "type": CustomerType.INDIVIDUAL, "city": "Sulaymaniyah"},
]


def seed_catalog():
    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).first()
        if not user:
            print("No user found. Database not initialized properly.")
            return

        categories = {}
        for data in CATEGORIES:
            category = db.query(Category).filter(Category.name == data["name"]).first()
            if not category:
                category = Category(**data)
                db.add(category)
            categories[data["name"]] = category
        db.flush()

        added = 0
        for p in PRODUCTS:
            if db.query(Product).filter(Product.sku == p["sku"]).first():
                continue
            db.add(Product(
                name=p["name"],
                name_ku=p.get("name_ku"),
                sku=p["sku"],
                category_id=categories[p["category"]].id,
                mufrad_price=Decimal(str(p["mufrad"])),
                jumla_price=Decimal(str(p["jumla"])),
                rmb_price=Decimal(str(p["rmb"])),
                stock_quantity=p["stock"],
            ))
            added += 1

        for m in MOTORCYCLES:
            if db.query(Motorcycle).filter(Motorcycle.sku == m["sku"]).first():
                continue
            motorcycle = Motorcycle(
                name=m["name"],
                sku=m["sku"],
                usd_retail_price=Decimal(str(m["retail"])),
                usd_wholesale_price=Decimal(str(m["wholesale"])),
                rmb_price=Decimal(str(m["rmb"])),
                stock_quantity=m["stock"],
            )
            motorcycle.refresh_status()
            db.add(motorcycle)
            added += 1

        for c in CUSTOMERS:
            if db.query(Customer).filter(Customer.sku == c["sku"]).first():
                continue
            address = db.query(Address).filter(Address.name == c["city"]).first()
            if not address:
                address = Address(name=c["city"])
                db.add(address)
                db.flush()
            db.add(Customer(
                name=c["name"],
                name_ar=c.get("name_ar"),
                sku=c["sku"],
                type=c["type"],
                city=c["city"],
                address_id=address.id,
                created_by_id=user.id,
            ))
            added += 1

        db.commit()
        print(f"Seeded {added} record(s): {len(PRODUCTS)} products, {len(MOTORCYCLES)} motorcycles, "
              f"{len(CUSTOMERS)} customers in catalogue")
    finally:
        db.close()


if __name__ == "__main__":
    seed_catalog()
