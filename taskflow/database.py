from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from taskflow.config.settings import Settings

DATABASE_URL = Settings.DATABASE["url"]

connect_args = {}
if Settings.is_postgres():
    # Managed PostgreSQL (Render, Railway, ...) expects sslmode=require
    connect_args = {"sslmode": Settings.DATABASE["sslmode"]}
elif Settings.is_sqlite():
    connect_args = {"check_same_thread": False}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=Settings.DATABASE["echo"],
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Request-scoped session dependency
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
