"""测试辅助模块"""

from .twofactor_helpers import FakeProvider, BrokenProvider

__all__ = [
    "FakeProvider",
    "BrokenProvider",
]
