"""图片解码与 WebP 转码。"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from card_sync.core.exceptions import TranscodeError

LOGGER = logging.getLogger(__name__)

WEBP_CONTENT_TYPE = "image/webp"
WEBP_EXTENSION = "webp"


def transcode_to_webp(data: bytes, quality: int = 85) -> bytes:
    """将任意 Pillow 可识别的图片字节转为有损 WebP。

    执行 EXIF 旋转校正；带透明通道的图片保留 RGBA，其余统一为 RGB。
    """

    if not data:
        raise TranscodeError("图片内容为空")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            normalized = _normalize_mode(img)

            buffer = io.BytesIO()
            normalized.save(buffer, format="WEBP", quality=quality, method=4)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        LOGGER.debug("无法转码图片: %s", exc)
        raise TranscodeError(f"无法转码图像: {exc}") from exc

    return buffer.getvalue()


def _normalize_mode(img: Image.Image) -> Image.Image:
    """WebP 只支持 RGB / RGBA。"""

    if img.mode in {"RGB", "RGBA"}:
        return img

    if img.mode in {"LA", "PA"} or (img.mode == "P" and "transparency" in img.info):
        return img.convert("RGBA")

    return img.convert("RGB")
