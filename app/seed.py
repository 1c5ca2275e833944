"""
Default reference data

Seeded into empty tables at startup (SEED_DEFAULTS) and served as fallback
lists when the database cannot be read.
"""

import logging

from sqlalchemy.orm import Session

from .models import Branch, CustomerLevel, PosCategory, ServicePackage
from .schemas import model_to_dict

logger = logging.getLogger(__name__)

_WEEKDAY_HOURS = {"open": "08:00", "close": "20:00"}

DEFAULT_BRANCHES = [
    {
        "id": "branch_main_001",
        "name": "Tumaga Branch",
        "code": "TMA01",
        "type": "full_service",
        "address": "Tumaga Road, Zamboanga City, Philippines",
        "city": "Zamboanga City",
        "phone": "+63 962 123 4567",
        "email": "tumaga@facautocare.com",
        "latitude": 6.9214,
        "longitude": 122.079,
        "manager_name": "Juan Dela Cruz",
        "capacity": 15,
        "services": ["Classic Wash", "VIP Silver", "VIP Gold", "Premium Detail", "Graphene Coating"],
        "operating_hours": {
            day: dict(_WEEKDAY_HOURS)
            for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
        },
        "is_main_branch": True,
    },
    {
        "id": "branch_boalan_001",
        "name": "Boalan Branch",
        "code": "BOA01",
        "type": "full_service",
        "address": "Boalan Road, Zamboanga City, Philippines",
        "city": "Zamboanga City",
        "phone": "+63 962 987 6543",
        "email": "boalan@facautocare.com",
        "latitude": 6.9094,
        "longitude": 122.0736,
        "manager_name": "Maria Santos",
        "capacity": 12,
        "services": ["Classic Wash", "VIP Silver", "VIP Gold", "Premium Detail"],
        "operating_hours": {
            day: dict(_WEEKDAY_HOURS)
            for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
        },
        "is_main_branch": False,
    },
]

DEFAULT_PACKAGES = [
    {
        "id": "pkg_basic_carwash",
        "name": "Basic Car Wash",
        "description": "Essential car wash service",
        "category": "carwash",
        "base_price": 150.0,
        "features": ["Exterior wash", "Tire shine"],
        "is_popular": True,
        "is_featured": False,
    },
    {
        "id": "pkg_classic",
        "name": "Classic",
        "description": "Monthly classic wash membership",
        "category": "subscription",
        "type": "recurring",
        "duration": "Monthly",
        "base_price": 500.0,
        "features": ["4 classic washes per month", "Priority booking"],
        "is_popular": False,
        "is_featured": False,
    },
    {
        "id": "pkg_vip_silver",
        "name": "VIP Silver",
        "description": "Monthly VIP silver membership",
        "category": "subscription",
        "type": "recurring",
        "duration": "Monthly",
        "base_price": 1500.0,
        "features": ["Unlimited classic washes", "1 interior detail per month"],
        "is_popular": True,
        "is_featured": False,
    },
    {
        "id": "pkg_vip_gold",
        "name": "VIP Gold",
        "description": "Monthly VIP gold membership",
        "category": "subscription",
        "type": "recurring",
        "duration": "Monthly",
        "base_price": 3000.0,
        "features": ["Unlimited premium washes", "Monthly full detail", "Free wax"],
        "is_popular": True,
        "is_featured": True,
    },
]

DEFAULT_LEVELS = [
    {
        "id": "level_bronze",
        "name": "Bronze Member",
        "min_points": 0,
        "max_points": 999,
        "discount_percentage": 0.0,
        "badge_color": "#CD7F32",
        "sort_order": 1,
    },
    {
        "id": "level_silver",
        "name": "Silver Member",
        "min_points": 1000,
        "max_points": 4999,
        "discount_percentage": 5.0,
        "badge_color": "#C0C0C0",
        "sort_order": 2,
    },
    {
        "id": "level_gold",
        "name": "Gold Member",
        "min_points": 5000,
        "max_points": None,
        "discount_percentage": 10.0,
        "badge_color": "#FFD700",
        "sort_order": 3,
    },
]

DEFAULT_POS_CATEGORIES = [
    {
        "id": "cat_carwash",
        "name": "Car Wash Services",
        "description": "Professional car washing services",
        "icon": "Car",
        "color": "#3B82F6",
        "sort_order": 1,
    },
    {
        "id": "cat_detailing",
        "name": "Detailing",
        "description": "Interior and exterior detailing",
        "icon": "Sparkles",
        "color": "#8B5CF6",
        "sort_order": 2,
    },
    {
        "id": "cat_products",
        "name": "Car Care Products",
        "description": "Retail car care products",
        "icon": "Package",
        "color": "#F97316",
        "sort_order": 3,
    },
]

# Membership prices used when a package is picked at registration
SUBSCRIPTION_PRICES = {
    "regular": 0.0,
    "classic": 500.0,
    "vip-silver": 1500.0,
    "vip-gold": 3000.0,
}


def get_package_price(package_id: str) -> float:
    return SUBSCRIPTION_PRICES.get(package_id, 0.0)


def _seed_table(db: Session, model, rows: list[dict]) -> int:
    if db.query(model).first() is not None:
        return 0
    for row in rows:
        db.add(model(**row))
    return len(rows)


def seed_defaults(db: Session) -> dict:
    """Insert default rows into empty reference tables"""
    try:
        counts = {
            "branches": _seed_table(db, Branch, DEFAULT_BRANCHES),
            "packages": _seed_table(db, ServicePackage, DEFAULT_PACKAGES),
            "levels": _seed_table(db, CustomerLevel, DEFAULT_LEVELS),
            "pos_categories": _seed_table(db, PosCategory, DEFAULT_POS_CATEGORIES),
        }
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to seed default data: {e}")
        raise

    seeded = {k: v for k, v in counts.items() if v}
    if seeded:
        logger.info(f"🌱 Seeded default data: {seeded}")
    return counts


def fallback_rows(model, rows: list[dict]) -> list[dict]:
    """Serialize default rows the way database rows are served"""
    return [model_to_dict(model(**{"is_active": True, **row})) for row in rows]
