"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from typing import Optional


class CardSyncError(Exception):
    """基础异常类型。"""


class ConfigurationError(CardSyncError):
    """缺少必要配置或配置不合法时抛出。"""


class ValidationError(CardSyncError):
    """命令行或调用参数不合法时抛出。"""


class TransportError(CardSyncError):
    """网络请求超时或连接失败。"""


class UpstreamStatusError(CardSyncError):
    """上游返回非 2xx 状态码。"""

    def __init__(self, url: str, status: int, body_preview: str = "") -> None:
        super().__init__(f"请求失败 {status}: {url} {body_preview}".rstrip())
        self.url = url
        self.status = status
        self.body_preview = body_preview


class CatalogFormatError(CardSyncError):
    """卡牌目录接口返回的数据结构无法解析。"""


class TranscodeError(CardSyncError):
    """图片无法解码或转码失败。"""


class UploadError(CardSyncError):
    """上传到对象存储失败。"""

    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.returncode = returncode
