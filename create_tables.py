# create_tables.py
import argparse

from taskflow.database import Base, engine
from taskflow import models  # noqa: F401  registers the tables on Base.metadata


def create_tables(drop_existing: bool = False):
    """Create all tables"""
    try:
        if drop_existing:
            Base.metadata.drop_all(bind=engine)
            print("Dropped existing tables")

        Base.metadata.create_all(bind=engine)
        print(f"✅ All tables created successfully on {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the Taskflow database schema")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    create_tables(drop_existing=args.drop)
