from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from storefront.core.config import settings

class Base(DeclarativeBase): pass

# sqlite connections get used from FastAPI's threadpool
_connect_args = {'check_same_thread': False} if settings.POSTGRES_DSN.startswith('sqlite') else {}
engine = create_engine(settings.POSTGRES_DSN, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
