# init_db.py
# Create every table known to the pitchdeck models on the configured DATABASE_URL.
from pitchdeck.core.database import init_db
from pitchdeck.core.logging_config import configure_logging

if __name__ == "__main__":
    configure_logging()
    init_db()
    print("Database tables created.")
