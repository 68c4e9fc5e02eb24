"""Create the tables and load the default plans and lookup data."""

import logging

from fakturace.core.database import SessionLocal, init_db
from fakturace.core.seed import seed_reference_data

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        seed_reference_data(db)
    finally:
        db.close()
