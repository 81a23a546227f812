from sqlalchemy import create_engine, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def postgres_url(user: str, password: str, host: str, port: int, db: str) -> str:
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


def create_service_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Single shared connection so an in-memory database survives across threads
        return create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=False, future=True, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def next_number(db: Session, column, prefix: str) -> int:
    """
    Next value for identifiers shaped ``<prefix><digits>``.

    Longer suffixes sort first so ``-1000`` beats ``-999``; values whose
    suffix is not purely numeric are skipped.
    """
    candidates = (
        db.query(column)
        .filter(column.like(f"{prefix}%"))
        .order_by(func.length(column).desc(), column.desc())
    )
    for (value,) in candidates.yield_per(100):
        suffix = value[len(prefix):]
        if suffix.isdigit():
            return int(suffix) + 1
    return 1
