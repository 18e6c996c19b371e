# energy_dashboard/database.py

import os
from dataclasses import dataclass
from typing import Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from energy_dashboard.config import SQL_ECHO


@dataclass(frozen=True)
class DatabaseConfig:
    username: str
    password: str
    host: str
    port: int
    database: str
    driver: str = "mysql+mysqlconnector"
    override_url: str | None = None

    @property
    def url(self) -> URL:
        if self.override_url:
            return make_url(self.override_url)
        return URL.create(
            drivername=self.driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @classmethod
    def from_env(cls, prefix: str = "DB") -> "DatabaseConfig":
        def _env(name: str, fallback: str) -> str:
            return os.getenv(f"{prefix}_{name}", fallback)

        return cls(
            username=_env("USER", "root"),
            password=_env("PASSWORD", ""),
            host=_env("HOST", "localhost"),
            port=int(_env("PORT", "3306")),
            database=_env("NAME", "energy_dashboard"),
            driver=_env("DRIVER", "mysql+mysqlconnector"),
            override_url=os.getenv("DATABASE_URL") or None,
        )


ENGINE_REGISTRY: Dict[str, Engine] = {}


def get_engine(
    config: DatabaseConfig,
    *,
    pool_pre_ping: bool = True,
    echo: bool = SQL_ECHO,
) -> Engine:
    key = config.url.render_as_string(hide_password=True)
    if key not in ENGINE_REGISTRY:
        options: Dict[str, object] = {"pool_pre_ping": pool_pre_ping, "echo": echo}
        if config.url.get_backend_name() == "mysql":
            options.update(pool_size=10, pool_recycle=3600)
        ENGINE_REGISTRY[key] = create_engine(config.url, **options)
    return ENGINE_REGISTRY[key]


DEFAULT_DB_CONFIG = DatabaseConfig.from_env()

engine = get_engine(DEFAULT_DB_CONFIG)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create any missing tables."""
    # models register themselves on Base.metadata at import
    from energy_dashboard import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
