"""二次验证门控测试

测试待验证标记、登录令牌标记和 needs_second_factor 的判断顺序。
"""

import pytest

from ytwofactor.auth.twofactor import (
    SecondFactorGate,
    ProviderStateReconciler,
    InMemorySession,
    InMemoryTokenProvider,
    LoginToken,
    SESSION_UID_KEY,
    SESSION_UID_DONE,
    SESSION_APP_PASSWORD,
    REMEMBER_LOGIN,
    LOGIN_TOKEN_2FA_APP,
)
from ytwofactor.exceptions import InvalidTokenException


@pytest.fixture
def reconciler(registry, loader, user_config):
    return ProviderStateReconciler(registry, loader, user_config)


@pytest.fixture
def gate(reconciler, session, token_provider, user_config):
    return SecondFactorGate(reconciler, session, token_provider, user_config, clock=lambda: 1337)


@pytest.fixture
def enabled(registry, provider, user):
    """为 jos 启用 email 提供者"""
    registry.enable_provider_for(provider, user)


class TestPrepareTwoFactorLogin:
    """prepare_two_factor_login 测试"""

    def test_sets_session_and_token_marker(self, gate, session, user_config, user):
        """测试写入会话标记和登录令牌标记"""
        gate.prepare_two_factor_login(user, True)

        assert session.get(SESSION_UID_KEY) == "jos"
        assert session.get(REMEMBER_LOGIN) is True
        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == ["42"]
        assert user_config.get_user_value("jos", LOGIN_TOKEN_2FA_APP, "42") == 1337

    def test_without_remember(self, gate, session, user):
        """测试不记住登录"""
        gate.prepare_two_factor_login(user, False)

        assert session.get(REMEMBER_LOGIN) is False
        assert gate.is_remember_login() is False

    def test_invalid_token_propagates(self, reconciler, user_config, user):
        """测试没有登录令牌时抛出异常"""
        gate = SecondFactorGate(
            reconciler,
            InMemorySession(session_id="unknown"),
            InMemoryTokenProvider(),
            user_config,
        )

        with pytest.raises(InvalidTokenException):
            gate.prepare_two_factor_login(user, False)

        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == []

    def test_default_clock(self, reconciler, session, token_provider, user_config, user):
        """测试默认时钟写入当前时间"""
        gate = SecondFactorGate(reconciler, session, token_provider, user_config)

        gate.prepare_two_factor_login(user, False)

        assert user_config.get_user_value("jos", LOGIN_TOKEN_2FA_APP, "42") > 1337


class TestNeedsSecondFactor:
    """needs_second_factor 测试"""

    def test_no_user(self, gate, session):
        """测试没有用户"""
        assert gate.needs_second_factor(None) is False
        assert session.to_dict() == {}

    def test_app_password_login(self, gate, session, enabled, user):
        """测试应用专用密码登录"""
        session.set(SESSION_APP_PASSWORD, "secret")
        session.set(SESSION_UID_KEY, "jos")

        assert gate.needs_second_factor(user) is False

    def test_pending_login_requires_second_factor(self, gate, enabled, user):
        """测试刚通过主凭证的登录需要二次验证"""
        gate.prepare_two_factor_login(user, False)

        assert gate.needs_second_factor(user) is True

    def test_pending_token_requires_second_factor(self, gate, session, user_config, enabled, user):
        """测试会话重建后，待验证的登录令牌仍需二次验证"""
        user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, "42", 1337)

        assert gate.needs_second_factor(user) is True
        assert not session.exists(SESSION_UID_DONE)

    def test_token_already_verified(self, gate, session, user_config, enabled, user):
        """测试当前登录令牌不在待验证列表中"""
        token_provider = InMemoryTokenProvider().add_token("mysessionid", LoginToken(token_id=40))
        gate.token_provider = token_provider
        for token_id in ("42", "43", "44"):
            user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, token_id, 1337)

        assert gate.needs_second_factor(user) is False
        assert session.get(SESSION_UID_DONE) == "jos"

    def test_token_without_any_marker(self, gate, session, enabled, user):
        """测试没有任何待验证令牌的登录视为已完成"""
        assert gate.needs_second_factor(user) is False
        assert session.get(SESSION_UID_DONE) == "jos"

    def test_already_verified_in_session(self, gate, session, user_config, enabled, user):
        """测试本会话已完成二次验证"""
        session.set(SESSION_UID_DONE, "jos")
        user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, "42", 1337)

        assert gate.needs_second_factor(user) is False

    def test_done_marker_of_other_user(self, gate, session, user_config, enabled, user):
        """测试完成标记属于其他用户时继续检查登录令牌"""
        session.set(SESSION_UID_DONE, "ferdinand")
        user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, "42", 1337)

        assert gate.needs_second_factor(user) is True

    def test_invalid_token_without_providers(self, reconciler, user_config, provider, registry, user):
        """测试登录令牌无效且没有可用提供者"""
        registry.disable_provider_for(provider, user)
        gate = SecondFactorGate(
            reconciler,
            InMemorySession(session_id="mysessionid"),
            InMemoryTokenProvider(),
            user_config,
        )

        assert gate.needs_second_factor(user) is False

    def test_invalid_token_with_providers(self, reconciler, user_config, enabled, user):
        """测试登录令牌无效时仍按提供者判断"""
        session = InMemorySession(session_id="mysessionid")
        gate = SecondFactorGate(reconciler, session, InMemoryTokenProvider(), user_config)

        assert gate.needs_second_factor(user) is True
        assert not session.exists(SESSION_UID_DONE)

    def test_no_providers_clears_pending_state(self, gate, session, user_config, provider, registry, user):
        """测试没有可用提供者时清理待验证状态"""
        registry.disable_provider_for(provider, user)
        gate.prepare_two_factor_login(user, False)
        user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, "7", 1000)

        assert gate.needs_second_factor(user) is False
        assert not session.exists(SESSION_UID_KEY)
        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == []

    def test_no_providers_keeps_pending_state_when_disabled(
        self, reconciler, session, token_provider, user_config, provider, registry, user
    ):
        """测试关闭清理选项后保留待验证状态"""
        gate = SecondFactorGate(
            reconciler, session, token_provider, user_config,
            clear_pending_without_providers=False,
        )
        registry.disable_provider_for(provider, user)
        gate.prepare_two_factor_login(user, False)

        assert gate.needs_second_factor(user) is False
        assert session.get(SESSION_UID_KEY) == "jos"
        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == ["42"]

    def test_provider_states_fixed_on_first_check(self, gate, registry, provider, user):
        """测试首次检查时补齐提供者状态"""
        provider.enabled_for.add("jos")
        gate.prepare_two_factor_login(user, False)

        assert gate.needs_second_factor(user) is True
        assert registry.get_provider_states(user) == {"email": True}


class TestClearTwoFactorPending:
    """clear_two_factor_pending 测试"""

    def test_clears_all_markers(self, gate, user_config):
        """测试删除所有待验证令牌"""
        for token_id in ("42", "43", "44"):
            user_config.set_user_value("jos", LOGIN_TOKEN_2FA_APP, token_id, 1337)
        user_config.set_user_value("ferdinand", LOGIN_TOKEN_2FA_APP, "50", 1337)

        gate.clear_two_factor_pending("jos")

        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == []
        assert user_config.get_user_keys("ferdinand", LOGIN_TOKEN_2FA_APP) == ["50"]

    def test_nothing_to_clear(self, gate, user_config):
        """测试没有待验证令牌时不报错"""
        gate.clear_two_factor_pending("jos")

        assert user_config.get_user_keys("jos", LOGIN_TOKEN_2FA_APP) == []
