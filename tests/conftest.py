"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 二次验证协作方的内存实现
- 假的二次验证提供者
- 数据库连接
"""

import os
import tempfile
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ytwofactor.auth.twofactor import (
    TwoFactorManager,
    TwoFactorUser,
    LoginToken,
    InMemoryProviderRegistry,
    StaticProviderLoader,
    InMemorySession,
    InMemoryUserConfig,
    InMemoryTokenProvider,
    InMemoryActivityManager,
)
from ytwofactor.config import TwoFactorSettings
from tests.helpers import FakeProvider


# ==================== 二次验证 Fixtures ====================

SESSION_ID = "mysessionid"
TOKEN_ID = 42
NOW = 1337


@pytest.fixture
def user():
    return TwoFactorUser(uid="jos", display_name="Jos")


@pytest.fixture
def provider():
    return FakeProvider("email", "Fake 2FA")


@pytest.fixture
def backup_provider():
    return FakeProvider("backup_codes", "Backup codes", valid_challenge="backup-1")


@pytest.fixture
def registry():
    return InMemoryProviderRegistry()


@pytest.fixture
def loader(provider):
    return StaticProviderLoader([provider])


@pytest.fixture
def session():
    return InMemorySession(session_id=SESSION_ID)


@pytest.fixture
def user_config():
    return InMemoryUserConfig()


@pytest.fixture
def token_provider():
    return InMemoryTokenProvider().add_token(SESSION_ID, LoginToken(token_id=TOKEN_ID, uid="jos"))


@pytest.fixture
def activity_manager():
    return InMemoryActivityManager()


@pytest.fixture
def remembered_users():
    """记录 remember-me 回调收到的用户"""
    return []


@pytest.fixture
def manager(registry, loader, session, token_provider, user_config, activity_manager, remembered_users):
    return TwoFactorManager(
        registry=registry,
        loader=loader,
        session=session,
        token_provider=token_provider,
        user_config=user_config,
        activity_manager=activity_manager,
        remember_me_handler=remembered_users.append,
        settings=TwoFactorSettings(),
        clock=lambda: NOW,
    )


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False，所有会话共享同一个连接。
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(memory_engine):
    from ytwofactor.auth.twofactor.orm import create_tables

    create_tables(memory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """创建数据库会话"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# ==================== 文件 Fixtures ====================

@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def sample_yaml_config(temp_dir):
    """创建示例 YAML 配置文件"""
    config_path = os.path.join(temp_dir, "settings.yaml")
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(
            "two_factor:\n"
            "  backup_provider_id: recovery\n"
            "  activity_app: auth\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  enable_console: false\n"
            "database:\n"
            "  url: sqlite:///test.db\n"
        )
    return config_path
