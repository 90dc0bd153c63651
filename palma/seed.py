import csv
from datetime import datetime
from pathlib import Path
from sqlalchemy.orm import Session
from shared.core import get_logger
from palma.domain.models import Base, MerchantProfile, Product, Review, User
from palma.infrastructure.security import hash_password

logger = get_logger(__name__)

DATA_DIR = Path(__file__).parent / "seed_data"

# Load order matters: reviews and profiles point at users and products
TABLE_FILES = [
    (User, "palma_users.csv"),
    (MerchantProfile, "palma_merchant_profiles.csv"),
    (Product, "palma_products.csv"),
    (Review, "palma_reviews.csv"),
]

# Simple column rename mapping from CSV -> model attribute
COLUMN_RENAMES = {
    "users": {"user_id": "id"},
    "merchant_profiles": {"profile_id": "id"},
    "products": {"product_id": "id"},
    "reviews": {"review_id": "id"},
}

def _coerce(column, value: str):
    if value == "":
        return None
    python_type = column.type.python_type
    if python_type is bool:
        return value.strip().lower() in ("true", "1", "yes")
    if python_type in (int, float):
        return python_type(value)
    return value

def load_rows(model: type[Base], file: str, data_dir: Path = DATA_DIR) -> list[Base]:
    table = model.__table__
    rename_map = COLUMN_RENAMES.get(table.name, {})
    with open(data_dir / file, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    objects = []
    for r in rows:
        fields = {}
        for k, v in r.items():
            target = rename_map.get(k, k)
            if target in table.columns:  # drop unknown columns silently
                fields[target] = _coerce(table.columns[target], v)
        if "created_at" in table.columns and not fields.get("created_at"):
            fields["created_at"] = datetime.utcnow()
        if model is User and r.get("password"):
            fields["password_hash"] = hash_password(r["password"])
        if model is Product and fields.get("image_url"):
            fields.setdefault("images", [fields["image_url"]])
        objects.append(model(**fields))
    return objects

def seed_database(db: Session, data_dir: Path = DATA_DIR) -> bool:
    """Load the demo data set; only runs against an empty users table."""
    if db.query(User).count():
        return False
    for model, file in TABLE_FILES:
        objects = load_rows(model, file, data_dir)
        db.add_all(objects)
        db.commit()
        logger.info(f"Loaded {len(objects)} rows into {model.__tablename__}")
    return True
