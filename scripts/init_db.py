"""
데이터베이스 초기화 스크립트

1. 전체 테이블 생성
2. 기본 충전 옵션 시드 (테이블이 비어 있을 때만)
3. 기본 시스템 설정 시드 (없는 키만)
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lifecurve import models  # noqa: F401  (모든 모델을 metadata에 등록)
from lifecurve.config import settings
from lifecurve.database.connection import engine
from lifecurve.database.session import session_scope
from lifecurve.models.base import Base
from lifecurve.models.order import RechargeOption
from lifecurve.models.system import SystemConfig
from lifecurve.services.payment_service import DEFAULT_RECHARGE_OPTIONS


def seed_recharge_options(db) -> int:
    if db.query(RechargeOption).count() > 0:
        return 0
    for index, option in enumerate(DEFAULT_RECHARGE_OPTIONS, start=1):
        db.add(
            RechargeOption(
                price=option.price,
                points=option.points,
                sort_order=index,
                is_active=True,
            )
        )
    return len(DEFAULT_RECHARGE_OPTIONS)


def seed_system_config(db) -> int:
    defaults = {
        "unlock_points": str(settings.UNLOCK_POINTS),
        "overview_points": str(settings.OVERVIEW_POINTS),
        "free_limit": str(settings.FREE_USAGE_LIMIT),
    }
    added = 0
    for key, value in defaults.items():
        if db.get(SystemConfig, key) is None:
            db.add(SystemConfig(key=key, value=value))
            added += 1
    return added


def init_db():
    """데이터베이스 초기화"""
    try:
        Base.metadata.create_all(bind=engine)
        with session_scope() as db:
            options = seed_recharge_options(db)
            configs = seed_system_config(db)
        print(
            f"Database initialized: {options} recharge options, {configs} config entries seeded"
        )
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
