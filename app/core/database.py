from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# 创建基础模型类
class Base(DeclarativeBase):
    pass


class Database:
    """数据库句柄

    在应用启动时创建，关闭时释放，通过 app.state.database 传递给请求。
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: Engine = self._create_engine(url, echo)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            # 内存数据库需要共享同一个连接
            if url in ("sqlite://", "sqlite:///:memory:"):
                return create_engine(
                    url,
                    echo=echo,
                    connect_args=connect_args,
                    poolclass=StaticPool
                )
            return create_engine(url, echo=echo, connect_args=connect_args)

        return create_engine(url, echo=echo, pool_pre_ping=True)

    def create_tables(self) -> None:
        """创建数据库表"""
        # 确保模型已注册到元数据
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured")

    def drop_tables(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        """释放连接池"""
        self.engine.dispose()
        logger.info("Database connection pool disposed")


# 数据库依赖注入
def get_db(request: Request) -> Generator[Session, None, None]:
    database: Database = request.app.state.database

    db = database.session()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
