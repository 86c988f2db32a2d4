"""Alembic 迁移环境

数据库地址取自环境变量 DATABASE_URL，未设置时使用应用配置，与应用启动时一致。
"""
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from app.core.config import get_settings
from app.core.database import Base, Database
import app.models  # noqa: F401  注册模型到元数据

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_database_url() -> str:
    return os.getenv("DATABASE_URL") or get_settings().DATABASE_URL


def _configure(**options) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        include_object=lambda obj, name, type_, reflected, compare_to: not (
            type_ == "table" and name.startswith("temp_")
        ),
        **options
    )


def run_migrations_offline() -> None:
    """生成SQL脚本，不连接数据库"""
    _configure(
        url=get_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run(connection: Connection) -> None:
    # SQLite 不支持大部分 ALTER 语句，使用批量模式重建表
    _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    database = Database(get_database_url())
    try:
        with database.engine.connect() as connection:
            _run(connection)
    finally:
        database.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
