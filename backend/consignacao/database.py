from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from consignacao.config import settings

# Engine do SQLAlchemy
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # Verifica conexões antes de usar
    echo=True if settings.ENVIRONMENT == "development" else False  # Log SQL em dev
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para os models
Base = declarative_base()

