import os
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding='utf-8')


def normalize_database_url(url: str) -> str:
    # sqlite:// and sqlite:///relative/path must come back unchanged
    return make_url(url).render_as_string(hide_password=False)


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL") or "sqlite:///./rewards.db")

connect_args = {}
if DATABASE_URL.startswith("postgres"):
    connect_args = {"options": "-c timezone=utc"}
elif DATABASE_URL.startswith("sqlite"):
    # request handlers run in a threadpool
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
