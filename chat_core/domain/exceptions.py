"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 Parser / Controller / 启动入口做统一捕获与日志记录。

按影响范围划分：

- 单个文件指令级（非致命）：InvalidReference、LineRangeError、FileReadError。
  Parser 捕获后只丢弃对应的文件块，继续解析其余内容。
- 角色名（非致命）：UnknownRole，仅记录日志，按 user 处理。
- Provider 级：ProviderError 及其子类，Controller 捕获后回到 Idle。
- 启动级（致命）：UnknownProviderError、ConfigError，由入口转换为进程退出。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "LINE_RANGE_ERROR"）。
        message: 人类可读错误信息。
        extra: 其他补充字段（例如 path、provider 等）。
    """

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)


class InvalidReference(BusinessError):
    """文件指令语法错误，例如 `+file` 后缺少路径或行号非法。"""

    def __init__(self, message: str, **extra):
        super().__init__("INVALID_REFERENCE", message, **extra)


class LineRangeError(BusinessError):
    """行号超出文件范围。"""

    def __init__(self, message: str, **extra):
        super().__init__("LINE_RANGE_ERROR", message, **extra)


class FileReadError(BusinessError):
    """引用的文件无法读取（不存在、无权限、非 UTF-8 等）。"""

    def __init__(self, message: str, **extra):
        super().__init__("FILE_READ_ERROR", message, **extra)


class UnknownRole(BusinessError):
    """文档中出现无法识别的角色名。"""

    def __init__(self, role: str):
        super().__init__("UNKNOWN_ROLE", f"unknown role: {role}", role=role)


class ProviderError(BusinessError):
    """Provider 调用失败（建立流或读取流的过程中）。"""

    def __init__(self, code: str = "PROVIDER_ERROR", message: str = "provider error", **extra):
        super().__init__(code, message, **extra)


class NetworkError(ProviderError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(ProviderError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(ProviderError):
    """Provider 限流错误。"""


class UnknownProviderError(BusinessError):
    """配置中的 provider 名称无法识别，仅在启动阶段出现。"""

    def __init__(self, name: str):
        super().__init__("UNKNOWN_PROVIDER", f"unknown provider: {name!r}", provider=name)


class ConfigError(BusinessError):
    """配置缺失或不合法，启动阶段致命。"""

    def __init__(self, message: str, **extra):
        super().__init__("CONFIG_ERROR", message, **extra)
