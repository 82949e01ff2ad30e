"""Dependency injection container for the evaluation pipeline."""

from __future__ import annotations

from dependency_injector import containers, providers
from sqlalchemy import create_engine

from .client import HTTPEvaluationClient
from .core import BatchDriver, PacingSettings, RetryPolicy
from .pipeline import EvaluationPipeline
from .schemas.config import AppConfig
from .storage import BackupWriter, DatamartWorkSource, SqlResultStore, StoreResultSink


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()
    settings = providers.Object(AppConfig())

    engine = providers.Singleton(create_engine, config.database_url)

    result_store = providers.Singleton(SqlResultStore, engine=engine)
    work_source = providers.Singleton(DatamartWorkSource, engine=engine)

    client = providers.Singleton(
        HTTPEvaluationClient,
        endpoint=config.evaluation.endpoint_url,
        api_key=config.evaluation.api_key,
        timeout=config.evaluation.timeout_seconds,
    )

    retry_policy = providers.Singleton(
        RetryPolicy.from_settings,
        max_attempts=config.retry.max_attempts,
        base_delay=config.retry.base_delay_seconds,
        cap_delay=config.retry.cap_delay_seconds,
        retry_timeouts=config.retry.retry_timeouts,
    )

    pacing = providers.Singleton(
        PacingSettings,
        base_delay_ms=config.pacing.base_delay_ms,
        max_delay_ms=config.pacing.max_delay_ms,
        growth_factor=config.pacing.growth_factor,
        window_seconds=config.pacing.window_seconds,
    )

    backup = providers.Singleton(BackupWriter, directory=config.backup_dir)

    sink = providers.Singleton(StoreResultSink, store=result_store, backup=backup)

    driver = providers.Factory(
        BatchDriver,
        client=client,
        sink=sink,
        policy=retry_policy,
        pacing=pacing,
        max_error_rate=config.max_error_rate,
    )

    pipeline = providers.Factory(
        EvaluationPipeline,
        config=settings,
        source=work_source,
        store=result_store,
        driver=driver,
    )


def create_container(settings: AppConfig | None = None) -> EvaluationContainer:
    """Instantiate the container from validated settings."""

    settings = settings or AppConfig()
    container = EvaluationContainer()
    container.settings.override(providers.Object(settings))
    container.config.from_dict(settings.model_dump(mode="python"))
    return container
