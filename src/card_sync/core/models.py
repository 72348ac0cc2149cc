"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from card_sync.core.exceptions import CatalogFormatError

SKIP_INVALID_CODE = "skip-invalid-code"
SKIP_MISSING_IMAGE = "skip-missing-image"
EXISTS = "exists"
UPLOADED = "uploaded"
ERROR_DOWNLOAD = "error-download"
ERROR_TRANSCODE = "error-transcode"
ERROR_WRITE = "error-write"
ERROR_UPLOAD = "error-upload"
ERROR_UNEXPECTED = "error-unexpected"


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, Mapping) else {}


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """目录接口返回的一条卡牌记录，只读。"""

    id: Optional[str]
    name: Optional[str]
    public_code: Optional[str]
    set_id: Optional[str] = None
    image_url: Optional[str] = None
    collector_number: Optional[int] = None
    is_signature: bool = False
    is_alternate_art: bool = False
    is_overnumbered: bool = False

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "CatalogEntry":
        """从接口 JSON 构建记录，缺失的嵌套字段按空值处理。"""

        if not isinstance(payload, Mapping):
            raise CatalogFormatError(f"卡牌记录不是 JSON 对象: {payload!r}")

        media = _section(payload, "media")
        card_set = _section(payload, "set")
        metadata = _section(payload, "metadata")
        return cls(
            id=payload.get("id"),
            name=payload.get("name"),
            public_code=payload.get("public_code"),
            set_id=card_set.get("set_id"),
            image_url=media.get("image_url") or None,
            collector_number=payload.get("collector_number"),
            is_signature=bool(metadata.get("signature", False)),
            is_alternate_art=bool(metadata.get("alternate_art", False)),
            is_overnumbered=bool(metadata.get("overnumbered", False)),
        )


@dataclass(frozen=True, slots=True)
class CatalogPage:
    """目录接口的一页数据。"""

    items: tuple[CatalogEntry, ...]
    total: int
    page: int
    size: int
    pages: int

    @classmethod
    def from_api(cls, payload: Any) -> "CatalogPage":
        if not isinstance(payload, Mapping) or not isinstance(payload.get("items"), list):
            raise CatalogFormatError("目录接口返回的数据缺少 items 列表")

        items = tuple(CatalogEntry.from_api(item) for item in payload["items"])
        try:
            return cls(
                items=items,
                total=int(payload.get("total", len(items))),
                page=int(payload.get("page", 1)),
                size=int(payload.get("size", len(items))),
                pages=int(payload.get("pages", 1)),
            )
        except (TypeError, ValueError) as exc:
            raise CatalogFormatError(f"目录分页字段无法解析: {exc}") from exc


@dataclass(slots=True)
class CardOutcome:
    """记录单张卡牌的同步结果（用于报告/日志）。"""

    index: int
    public_code: Optional[str]
    status: str
    card_id: Optional[str] = None
    object_key: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_skipped(self) -> bool:
        return self.status.startswith("skip")

    @property
    def is_failed(self) -> bool:
        return self.status.startswith("error")


@dataclass(slots=True)
class SyncResult:
    """一次批量同步的产出。"""

    uploaded: list[CardOutcome] = field(default_factory=list)
    existing: list[CardOutcome] = field(default_factory=list)
    skipped: list[CardOutcome] = field(default_factory=list)
    failed: list[CardOutcome] = field(default_factory=list)

    def record(self, outcome: CardOutcome) -> None:
        if outcome.status == UPLOADED:
            self.uploaded.append(outcome)
        elif outcome.status == EXISTS:
            self.existing.append(outcome)
        elif outcome.is_skipped:
            self.skipped.append(outcome)
        else:
            self.failed.append(outcome)

    def all_outcomes(self) -> list[CardOutcome]:
        """按目录顺序返回所有结果记录，方便生成报告。"""

        return sorted(
            [*self.uploaded, *self.existing, *self.skipped, *self.failed],
            key=lambda outcome: outcome.index,
        )
