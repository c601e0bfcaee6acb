"""Create all tables. Run on app startup.

The first start creates an ACTIVE developer account with a random
password, printed once to the console.
"""
import secrets

from arbati.core.config import settings
from arbati.core.security import get_password_hash
from arbati.db.base import Base
from arbati.db.session import engine, SessionLocal
from arbati import models  # noqa: F401 - register models
from arbati.models.user import User, UserRole, UserStatus


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            db.add(User(
                email=settings.ADMIN_EMAIL,
                hashed_password=get_password_hash(default_password),
                name="Administrator",
                role=UserRole.DEVELOPER,
                status=UserStatus.ACTIVE,
            ))
            db.commit()

            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Email:    {settings.ADMIN_EMAIL}")
            print(f"Password: {default_password}")
            print("\nChange this password after first login.")
            print("=" * 70 + "\n")
    finally:
        db.close()
