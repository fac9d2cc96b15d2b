"""SQLAlchemy 存储适配器

提供者启用状态和用户偏好（含登录令牌标记、用户级关闭开关）持久化到数据库。

使用示例:
    from ytwofactor.config import DatabaseSettings
    from ytwofactor.auth.twofactor.orm import (
        create_session_factory,
        SQLAlchemyProviderRegistry,
        SQLAlchemyUserConfig,
    )

    session_factory = create_session_factory(DatabaseSettings(url="sqlite:///2fa.db"))
    registry = SQLAlchemyProviderRegistry(session_factory)
    user_config = SQLAlchemyUserConfig(session_factory)
"""

from typing import Optional, Any, Dict, List

from sqlalchemy import String, Text, Boolean, create_engine, select, delete
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from ytwofactor.config import DatabaseSettings
from ytwofactor.log import get_logger
from .base import TwoFactorProvider, ProviderRegistry, UserConfig

logger = get_logger()


class Base(DeclarativeBase):
    pass


class ProviderStateModel(Base):
    """用户对提供者的启用状态

    没有记录表示尚未判定。
    """
    __tablename__ = "two_factor_provider_state"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, comment="用户ID")
    provider_id: Mapped[str] = mapped_column(String(64), primary_key=True, comment="提供者ID")
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, comment="是否启用")


class UserPreferenceModel(Base):
    """用户偏好，值统一以字符串存储"""
    __tablename__ = "user_preference"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, comment="用户ID")
    app: Mapped[str] = mapped_column(String(64), primary_key=True, comment="应用命名空间")
    key: Mapped[str] = mapped_column(String(64), primary_key=True, comment="键")
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="值")


def create_session_factory(settings: Optional[DatabaseSettings] = None) -> sessionmaker:
    """根据数据库配置创建会话工厂

    内存 SQLite 使用 StaticPool，保证所有会话共享同一个连接。
    """
    settings = settings or DatabaseSettings()
    engine_kwargs: Dict[str, Any] = {"echo": settings.echo}
    if settings.url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(settings.url, **engine_kwargs)
    create_tables(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(engine)


class SQLAlchemyProviderRegistry(ProviderRegistry):
    """数据库提供者状态注册表"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_provider_states(self, user: Any) -> Dict[str, bool]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(ProviderStateModel).where(ProviderStateModel.user_id == user.uid)
            ).all()
            return {row.provider_id: bool(row.enabled) for row in rows}

    def enable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        self._set_state(user.uid, provider.get_id(), True)

    def disable_provider_for(self, provider: TwoFactorProvider, user: Any) -> None:
        self._set_state(user.uid, provider.get_id(), False)

    def delete_user_states(self, user_id: str) -> int:
        """删除用户的所有提供者状态

        Returns:
            删除的记录数
        """
        with self._session_factory() as session:
            result = session.execute(
                delete(ProviderStateModel).where(ProviderStateModel.user_id == user_id)
            )
            session.commit()
            return result.rowcount

    def _set_state(self, user_id: str, provider_id: str, enabled: bool) -> None:
        with self._session_factory() as session:
            row = session.get(ProviderStateModel, (user_id, provider_id))
            if row is None:
                row = ProviderStateModel(user_id=user_id, provider_id=provider_id, enabled=enabled)
                session.add(row)
            else:
                row.enabled = enabled
            session.commit()

        logger.debug(f"Provider state saved: user={user_id}, provider={provider_id}, enabled={enabled}")


class SQLAlchemyUserConfig(UserConfig):
    """数据库用户偏好存储

    值以字符串形式写入，读取时原样返回字符串。
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_user_value(self, uid: str, app: str, key: str, default: Any = None) -> Any:
        with self._session_factory() as session:
            row = session.get(UserPreferenceModel, (uid, app, key))
            if row is None:
                return default
            return row.value

    def set_user_value(self, uid: str, app: str, key: str, value: Any) -> None:
        stored = None if value is None else str(value)
        with self._session_factory() as session:
            row = session.get(UserPreferenceModel, (uid, app, key))
            if row is None:
                session.add(UserPreferenceModel(user_id=uid, app=app, key=key, value=stored))
            else:
                row.value = stored
            session.commit()

    def delete_user_value(self, uid: str, app: str, key: str) -> None:
        with self._session_factory() as session:
            session.execute(
                delete(UserPreferenceModel).where(
                    UserPreferenceModel.user_id == uid,
                    UserPreferenceModel.app == app,
                    UserPreferenceModel.key == key,
                )
            )
            session.commit()

    def get_user_keys(self, uid: str, app: str) -> List[str]:
        with self._session_factory() as session:
            return list(session.scalars(
                select(UserPreferenceModel.key).where(
                    UserPreferenceModel.user_id == uid,
                    UserPreferenceModel.app == app,
                ).order_by(UserPreferenceModel.key)
            ).all())
