from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy.orm import Session

from lifecurve.database.connection import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """요청 단위 세션 - 커밋은 리포지토리가 직접 수행"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """스크립트/배치용 세션. 블록이 정상 종료되면 커밋, 예외 시 롤백"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
