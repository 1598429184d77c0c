from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import logging

from app.core.config import settings

logger = logging.getLogger("app")
logger.info(f"Connecting to database with URL: {settings.DATABASE_URL}")

# Check if DATABASE_URL is properly set
if not settings.DATABASE_URL:
    logger.error("DATABASE_URL is not set or empty!")
    raise ValueError("DATABASE_URL environment variable is required")

# SQLite is only used for local runs and tests; connections cross threads there
# because fan-out work runs in the threadpool
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

try:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,  # Check connection before using from pool
        pool_recycle=3600,   # Recycle connections after 1 hour
        connect_args=connect_args,
    )
    logger.info("Database engine created successfully")
except Exception as e:
    logger.error(f"Failed to create database engine: {e}")
    raise

# Create session factory for database interactions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all SQLAlchemy models
Base = declarative_base()

# Database session dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
