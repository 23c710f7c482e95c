from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tutorpress.config import settings

# The WordPress database is owned by WordPress; this service only reads posts,
# users and options and writes post fields and post meta.
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using them
    pool_recycle=3600,  # MySQL drops idle connections after wait_timeout
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for FastAPI routes to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
