"""二次验证使用的会话键与持久化键"""

# ==================== 会话键 ====================

# 主凭证已通过、等待二次验证的用户 ID
SESSION_UID_KEY = "two_factor_auth_uid"

# 二次验证通过后是否需要长期记住本次登录
REMEMBER_LOGIN = "two_factor_remember_login"

# 本会话中已完成二次验证的用户 ID
SESSION_UID_DONE = "two_factor_auth_passed"

# 通过应用专用密码登录，跳过二次验证
SESSION_APP_PASSWORD = "app_password"

# ==================== 用户偏好（持久化） ====================

# 用户级开关所在的 app 命名空间
CORE_APP = "core"

# 用户主动关闭二次验证
TWO_FACTOR_DISABLED_KEY = "two_factor_auth_disabled"

# 尚未完成二次验证的登录令牌：key 为令牌 ID，value 为写入时间（unix 秒）
LOGIN_TOKEN_2FA_APP = "login_token_2fa"

# ==================== 审计 ====================

SUBJECT_SUCCESS = "twofactor_success"
SUBJECT_FAILED = "twofactor_failed"

# ==================== 其他 ====================

BACKUP_CODES_PROVIDER_ID = "backup_codes"
