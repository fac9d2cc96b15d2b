"""二次验证管理器测试

测试完整的登录流程，以及用户级开关、备用码等管理器接口。
"""

import pytest

from ytwofactor.auth.twofactor import (
    TwoFactorManager,
    TwoFactorUser,
    StaticProviderLoader,
    InMemorySession,
    InMemoryTokenProvider,
    InMemoryActivityManager,
    LoginToken,
    SESSION_UID_KEY,
    SESSION_UID_DONE,
    LOGIN_TOKEN_2FA_APP,
    CORE_APP,
    TWO_FACTOR_DISABLED_KEY,
)
from ytwofactor.config import TwoFactorSettings


class TestLoginFlow:
    """完整登录流程测试"""

    def test_full_flow(self, manager, registry, provider, session, user_config, activity_manager, user):
        """测试主凭证 -> 待验证 -> 校验通过 -> 不再需要验证"""
        registry.enable_provider_for(provider, user)

        assert manager.is_two_factor_authenticated(user) is True
        manager.prepare_two_factor_login(user, False)
        assert manager.needs_second_factor(user) is True

        providers = manager.get_provider_set(user)
        assert [p.get_id() for p in providers.get_primary_providers()] == ["email"]

        assert manager.verify_challenge("email", user, "dontpassme") is False
        assert manager.needs_second_factor(user) is True

        assert manager.verify_challenge("email", user, "passme") is True
        assert manager.needs_second_factor(user) is False

        assert [e.subject for e in activity_manager.events] == ["twofactor_failed", "twofactor_success"]

    def test_verified_token_survives_new_session(
        self, registry, loader, user_config, provider, user
    ):
        """测试同一个登录令牌在新会话中无需重新验证"""
        registry.enable_provider_for(provider, user)
        token_provider = InMemoryTokenProvider() \
            .add_token("first", LoginToken(token_id=42, uid="jos")) \
            .add_token("second", LoginToken(token_id=42, uid="jos"))

        first = TwoFactorManager(
            registry, loader, InMemorySession("first"), token_provider,
            user_config, InMemoryActivityManager(), settings=TwoFactorSettings(),
        )
        first.prepare_two_factor_login(user, True)
        first.verify_challenge("email", user, "passme")

        second_session = InMemorySession("second")
        second = TwoFactorManager(
            registry, loader, second_session, token_provider,
            user_config, InMemoryActivityManager(), settings=TwoFactorSettings(),
        )

        assert second.needs_second_factor(user) is False
        assert second_session.get(SESSION_UID_DONE) == "jos"

    def test_unverified_token_in_new_session(self, registry, loader, user_config, provider, user):
        """测试未完成验证的登录令牌在新会话中仍需验证"""
        registry.enable_provider_for(provider, user)
        token_provider = InMemoryTokenProvider() \
            .add_token("first", LoginToken(token_id=42)) \
            .add_token("second", LoginToken(token_id=42))

        first = TwoFactorManager(
            registry, loader, InMemorySession("first"), token_provider,
            user_config, InMemoryActivityManager(), settings=TwoFactorSettings(),
        )
        first.prepare_two_factor_login(user, False)

        second = TwoFactorManager(
            registry, loader, InMemorySession("second"), token_provider,
            user_config, InMemoryActivityManager(), settings=TwoFactorSettings(),
        )

        assert second.needs_second_factor(user) is True

    def test_user_without_providers(self, manager, session, user):
        """测试没有启用提供者的用户不需要二次验证"""
        assert manager.is_two_factor_authenticated(user) is False

        manager.prepare_two_factor_login(user, False)

        assert manager.needs_second_factor(user) is False
        assert not session.exists(SESSION_UID_KEY)

    def test_remember_login(self, manager, registry, provider, remembered_users, user):
        """测试记住登录"""
        registry.enable_provider_for(provider, user)
        manager.prepare_two_factor_login(user, True)

        assert manager.is_remember_login() is True
        manager.verify_challenge("email", user, "passme")

        assert remembered_users == [user]
        assert manager.is_remember_login() is False


class TestUserOptOut:
    """用户级开关测试"""

    def test_disable_and_enable(self, manager, registry, provider, user_config, user):
        """测试关闭后再开启"""
        registry.enable_provider_for(provider, user)

        manager.disable_two_factor_authentication(user)
        assert user_config.get_user_value("jos", CORE_APP, TWO_FACTOR_DISABLED_KEY) == 1
        assert manager.is_two_factor_authenticated(user) is False

        manager.enable_two_factor_authentication(user)
        assert user_config.get_user_value("jos", CORE_APP, TWO_FACTOR_DISABLED_KEY) is None
        assert manager.is_two_factor_authenticated(user) is True

    def test_disabled_user_skips_second_factor(self, manager, registry, provider, user):
        """测试关闭二次验证的用户不需要验证"""
        registry.enable_provider_for(provider, user)
        manager.disable_two_factor_authentication(user)
        manager.prepare_two_factor_login(user, False)

        assert manager.needs_second_factor(user) is False

    def test_provider_states_kept(self, manager, registry, provider, user):
        """测试关闭开关不修改提供者状态"""
        registry.enable_provider_for(provider, user)

        manager.disable_two_factor_authentication(user)

        assert registry.get_provider_states(user) == {"email": True}
        assert manager.get_provider(user, "email") is provider

    def test_enable_without_prior_disable(self, manager, user_config, user):
        """测试未关闭时开启不报错"""
        manager.enable_two_factor_authentication(user)

        assert user_config.get_user_keys("jos", CORE_APP) == []


class TestManagerAccessors:
    """管理器其他接口测试"""

    def test_get_backup_provider(
        self, registry, user_config, session, token_provider, activity_manager, provider, backup_provider, user
    ):
        """测试获取备用码提供者"""
        loader = StaticProviderLoader([provider, backup_provider])
        manager = TwoFactorManager(
            registry, loader, session, token_provider, user_config, activity_manager,
            settings=TwoFactorSettings(),
        )
        registry.enable_provider_for(backup_provider, user)

        assert manager.get_backup_provider(user) is backup_provider
        assert manager.verify_challenge("backup_codes", user, "backup-1") is True

    def test_clear_two_factor_pending(self, manager, user_config, user):
        """测试清理所有待验证令牌"""
        manager.prepare_two_factor_login(user, False)
        user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, "99", 1337)

        manager.clear_two_factor_pending("jos")

        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == []

    def test_prepare_uses_clock(self, manager, user_config, user):
        """测试写入的时间来自注入的时钟"""
        manager.prepare_two_factor_login(user, False)

        assert user_config.get_user_value("jos", LOGIN_TOKEN_2FA_APP, "42") == 1337

    def test_listeners(self, manager, registry, provider, user):
        """测试通过管理器注册监听器"""
        results = []
        manager.on_success(lambda event: results.append(("ok", event.provider_id)))
        manager.on_failure(lambda event: results.append(("fail", event.provider_id)))
        registry.enable_provider_for(provider, user)

        manager.verify_challenge("email", user, "dontpassme")
        manager.verify_challenge("email", user, "passme")

        assert results == [("fail", "email"), ("ok", "email")]

    def test_settings_applied(self, registry, loader, session, token_provider, user_config, provider, user):
        """测试配置传递到各组件"""
        activity_manager = InMemoryActivityManager()
        settings = TwoFactorSettings(
            backup_provider_id="email",
            activity_app="auth",
            activity_type="login",
            clear_pending_without_providers=False,
        )
        manager = TwoFactorManager(
            registry, loader, session, token_provider, user_config, activity_manager,
            settings=settings,
        )

        assert manager.reconciler.backup_provider_id == "email"
        assert manager.gate.clear_pending_without_providers is False

        registry.enable_provider_for(provider, user)
        assert manager.get_backup_provider(user) is provider
        manager.verify_challenge("email", user, "passme")
        assert activity_manager.events[0].app == "auth"
        assert activity_manager.events[0].type == "login"

    def test_settings_from_environment(self, monkeypatch, registry, loader, session, token_provider, user_config):
        """测试默认从环境变量读取配置"""
        monkeypatch.setenv("YTWOFACTOR_2FA_ACTIVITY_APP", "twofactor")

        manager = TwoFactorManager(
            registry, loader, session, token_provider, user_config, InMemoryActivityManager(),
        )

        assert manager.settings.activity_app == "twofactor"
        assert manager.verifier.activity_app == "twofactor"

    def test_other_user_unaffected(self, manager, registry, provider, session, user):
        """测试完成标记只对对应用户生效"""
        registry.enable_provider_for(provider, user)
        ferdinand = TwoFactorUser(uid="ferdinand")
        registry.enable_provider_for(provider, ferdinand)
        manager.user_config.set_user_value("ferdinand", LOGIN_TOKEN_2FA_APP, "42", 1337)
        session.set(SESSION_UID_DONE, "jos")

        assert manager.needs_second_factor(user) is False
        assert manager.needs_second_factor(ferdinand) is True
