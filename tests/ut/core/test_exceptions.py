"""异常体系单元测试"""

from __future__ import annotations

from zdeps.core.exceptions import (
    InvalidConstraintError,
    InvalidVersionError,
    RemoteError,
    RemoteNotFoundError,
    RetrievalError,
    ZdepsError,
)


class TestZdepsError:
    def test_dependency_annotation(self) -> None:
        e = RetrievalError("git clone 失败")
        assert str(e) == "git clone 失败"
        assert e.with_dependency("zap") is e
        assert str(e) == "[zap] git clone 失败"

    def test_first_annotation_wins(self) -> None:
        e = ZdepsError("x").with_dependency("a").with_dependency("b")
        assert e.dependency == "a"

    def test_hierarchy(self) -> None:
        assert issubclass(InvalidConstraintError, InvalidVersionError)
        assert issubclass(RemoteNotFoundError, RemoteError)
        assert InvalidConstraintError.code == "INVALID_CONSTRAINT"
        assert ZdepsError.code == "UNKNOWN"
