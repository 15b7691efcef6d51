"""Application factory for the ChronMap admin server.

`create_app(config)` performs all setup (logging, config loading, store
composition, router registration) so tests can construct isolated apps:

    from chronmap_lib.main import create_app, Config
    app = create_app(Config(config_path=Path('data/config/chronmap.yml')))

The app owns one `InstanceRegistry`, builds the stores declared in the
YAML config at startup and closes every registered store on shutdown, which
writes a final snapshot for each dirty store.
"""
from contextlib import asynccontextmanager
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from chronmap_lib.config.config import load_config
from chronmap_lib.logging_config import configure_logging
from chronmap_lib.services import ServiceContainer


@dataclass
class Config:
    config_path: Optional[Path] = None
    # overrides data_dir from the YAML file when set
    data_dir: Optional[str] = None
    configure_logging: bool = True


def create_app(config: Config) -> FastAPI:
    """Create and return a configured FastAPI application."""
    logger = configure_logging(config.config_path) if config.configure_logging else logging.getLogger(__name__)

    app_config = load_config(config.config_path)
    data_dir = config.data_dir or app_config.data_dir

    container = ServiceContainer()
    registry = container.registry()
    container.register_singleton("app_config", app_config)

    try:
        for store_cfg in app_config.stores:
            store = store_cfg.to_builder(registry, data_dir).build()
            logger.info("Store %r ready with %d entries", store.name, store.size())
    except Exception:
        logger.error("Store setup failed, closing the stores built so far")
        registry.close_all()
        raise

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        closed = registry.close_all()
        logger.info("Shutdown complete, %d stores closed", closed)

    app = FastAPI(title="ChronMap Server", lifespan=lifespan)
    app.state.container = container

    from chronmap_lib.server.api import router as server_router
    app.include_router(server_router, prefix='/api')

    return app
