# seed_db.py
# Create the tables and the default presentation owner.
from pitchdeck.core.bootstrap import bootstrap_default_owner
from pitchdeck.core.database import SessionLocal, init_db
from pitchdeck.core.logging_config import configure_logging


def seed():
    init_db()
    db = SessionLocal()
    try:
        owner = bootstrap_default_owner(db)
        print(f"Default owner: {owner.email} ({owner.id})")
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed()
