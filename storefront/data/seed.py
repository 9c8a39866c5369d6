# storefront/data/seed.py
from storefront.data.database import SessionLocal
from storefront.domain.errors import Conflict
from storefront.domain.order_status import Role
from storefront.domain.schemas import UserCreate
from storefront.services.user_service import UserService
from storefront.utils.settings import ADMIN_EMAIL, ADMIN_PASSWORD
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def seed():
    """Zaklada konto admina z ADMIN_EMAIL / ADMIN_PASSWORD, jesli go nie ma."""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD nie ustawione, pomijam seed")
        return

    db = SessionLocal()
    try:
        payload = UserCreate(name="Admin", email=ADMIN_EMAIL, password=ADMIN_PASSWORD)
        try:
            UserService(db).create_user(payload, role=Role.ADMIN)
        except Conflict:
            # not forcing: only seed if missing
            logger.info(f"Admin {ADMIN_EMAIL} juz istnieje")
    finally:
        db.close()


if __name__ == "__main__":
    from storefront.main import init_db

    init_db()
    seed()
