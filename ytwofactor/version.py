"""版本信息"""

__version__ = "0.3.0"
__author__ = "yafo-ai"
__description__ = "二次验证（2FA）登录协调核心库"
