"""卡牌编号到 CDN 存储键的映射规则。

同一编号在任何一次运行中都必须得到相同的键，幂等性完全依赖这一点。
"""

from __future__ import annotations

from typing import Optional

SIGNATURE_MARKER = "*"
SIGNATURE_SUBSTITUTE = "s"
MAX_CODE_SEGMENTS = 2


def resolve_card_id(public_code: Optional[str]) -> Optional[str]:
    """将 public_code 规范化为卡牌 ID；编号缺失或格式异常时返回 None。

    ``OGN-001/298`` 中斜杠后的部分只是印刷版本信息，不参与 ID。
    签名卡的 ``*`` 与 CDN 上的 ``s`` 拼写共享同一位置，仅替换第一次出现。
    """

    if not public_code:
        return None

    segments = public_code.split("/")
    if len(segments) > MAX_CODE_SEGMENTS:
        return None

    card_id = segments[0].replace(SIGNATURE_MARKER, SIGNATURE_SUBSTITUTE, 1)
    return card_id or None


def build_object_key(card_id: str, prefix: str = "cards", extension: str = "webp") -> str:
    """生成对象存储键，例如 ``cards/OGN-001.webp``。"""

    return f"{prefix}/{card_id}.{extension}"


def build_public_url(base_url: str, object_key: str) -> str:
    return f"{base_url.rstrip('/')}/{object_key}"
