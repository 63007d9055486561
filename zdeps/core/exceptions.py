"""统一异常体系

所有业务异常继承 ZdepsError。CLI 层据此输出一行友好提示并以非零状态退出，
其余异常（编程错误）原样上抛。

拉取流程中抛出的异常会通过 with_dependency() 标注出错的依赖名，
便于调用方输出可操作的错误信息。
"""

from __future__ import annotations


class ZdepsError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.dependency = ""

    def with_dependency(self, name: str) -> ZdepsError:
        """标注出错的依赖名（已标注时保持不变）"""
        if not self.dependency:
            self.dependency = name
        return self

    def __str__(self) -> str:
        if self.dependency:
            return f"[{self.dependency}] {self.message}"
        return self.message


class ConfigError(ZdepsError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ManifestError(ZdepsError):
    """清单 / 锁文件缺失或格式错误"""

    code = "MANIFEST_ERROR"


class DependencyNotFoundError(ZdepsError):
    """指定的依赖不在清单中"""

    code = "DEPENDENCY_NOT_FOUND"


class InvalidLocatorError(ZdepsError):
    """仓库地址格式错误，不可重试"""

    code = "INVALID_LOCATOR"


class InvalidVersionError(ZdepsError):
    """版本号格式错误"""

    code = "INVALID_VERSION"


class InvalidConstraintError(InvalidVersionError):
    """版本约束格式错误"""

    code = "INVALID_CONSTRAINT"


class NoMatchingVersionError(ZdepsError):
    """候选版本中没有满足约束的版本"""

    code = "NO_MATCHING_VERSION"

    def __init__(self, message: str, candidates: list[str] | None = None) -> None:
        super().__init__(message)
        self.candidates = candidates or []


class NoMatchingTagError(ZdepsError):
    """按版本号探测 tag 全部落空"""

    code = "NO_MATCHING_TAG"

    def __init__(self, message: str, tried: list[str] | None = None) -> None:
        super().__init__(message)
        self.tried = tried or []


class RemoteError(ZdepsError):
    """远端元数据查询失败（网络 / API 错误）"""

    code = "REMOTE_ERROR"


class RemoteNotFoundError(RemoteError):
    """远端资源不存在（仓库 / release）"""

    code = "REMOTE_NOT_FOUND"


class RetrievalError(ZdepsError):
    """仓库拉取失败（git clone / checkout）"""

    code = "RETRIEVAL_FAILURE"


class ChecksumMismatchError(ZdepsError):
    """校验和不匹配，绝不静默接受"""

    code = "CHECKSUM_MISMATCH"

    def __init__(self, message: str, expected: str = "", actual: str = "") -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DriftDetectedError(ZdepsError):
    """清单与锁文件不一致"""

    code = "DRIFT_DETECTED"

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []
