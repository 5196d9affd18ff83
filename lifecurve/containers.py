from dependency_injector import containers, providers

from lifecurve.config import Settings
from lifecurve.core.admin_session import (
    DatabaseSessionStore,
    MemorySessionStore,
    RedisSessionStore,
)
from lifecurve.database.session import get_db
from lifecurve.services.admin_service import AdminService
from lifecurve.services.consultation_service import ConsultationService
from lifecurve.services.master_service import MasterService
from lifecurve.services.payment_service import PaymentService
from lifecurve.services.point_service import PointService
from lifecurve.services.redemption_service import RedemptionService
from lifecurve.services.redis_service import RedisService
from lifecurve.services.result_cache_service import ResultCacheService
from lifecurve.services.site_stats_service import SiteStatsService
from lifecurve.services.system_config_service import SystemConfigService
from lifecurve.services.usage_service import UsageService
from lifecurve.services.user_service import UserService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RepositoryModule(containers.DeclarativeContainer):
    """Database session."""

    get_db = providers.Resource(get_db)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies."""

    config = providers.DependenciesContainer()
    repositories = providers.DependenciesContainer()

    redis_service = providers.Singleton(RedisService, settings=config.config)

    # ADMIN_SESSION_BACKEND: database | redis | memory
    session_store = providers.Selector(
        config.config.provided.ADMIN_SESSION_BACKEND,
        database=providers.Factory(
            DatabaseSessionStore, db=repositories.get_db, settings=config.config
        ),
        redis=providers.Singleton(
            RedisSessionStore, redis_service=redis_service, settings=config.config
        ),
        memory=providers.Singleton(MemorySessionStore, settings=config.config),
    )

    point_service = providers.Factory(PointService, db=repositories.get_db)
    usage_service = providers.Factory(UsageService, db=repositories.get_db, settings=config.config)
    redemption_service = providers.Factory(RedemptionService, db=repositories.get_db)
    payment_service = providers.Factory(PaymentService, db=repositories.get_db, settings=config.config)
    result_cache_service = providers.Factory(ResultCacheService, db=repositories.get_db)
    master_service = providers.Factory(MasterService, db=repositories.get_db)
    consultation_service = providers.Factory(
        ConsultationService, db=repositories.get_db, settings=config.config
    )
    user_service = providers.Factory(UserService, db=repositories.get_db)
    system_config_service = providers.Factory(
        SystemConfigService, db=repositories.get_db, settings=config.config
    )
    site_stats_service = providers.Factory(
        SiteStatsService, db=repositories.get_db, settings=config.config
    )
    admin_service = providers.Factory(
        AdminService,
        db=repositories.get_db,
        session_store=session_store,
        settings=config.config,
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "lifecurve.core.admin_guard",
            "lifecurve.routers.usage_router",
            "lifecurve.routers.redeem_router",
            "lifecurve.routers.result_cache_router",
            "lifecurve.routers.pay_router",
            "lifecurve.routers.master_router",
            "lifecurve.routers.consultation_router",
            "lifecurve.routers.config_router",
            "lifecurve.routers.stats_router",
            "lifecurve.routers.point_router",
            "lifecurve.routers.admin_router",
            "lifecurve.routers.admin_code_router",
            "lifecurve.routers.admin_master_router",
            "lifecurve.routers.admin_consultation_router",
        ],
    )

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule)
    services = providers.Container(
        ServiceModule, config=config, repositories=repositories
    )
