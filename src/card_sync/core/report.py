"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from card_sync.core.models import CardOutcome

HEADER = ["index", "public_code", "card_id", "object_key", "status", "message"]


def write_csv_report(outcomes: Iterable[CardOutcome], report_path: Path) -> Path:
    """将同步结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    record.index,
                    record.public_code or "",
                    record.card_id or "",
                    record.object_key or "",
                    record.status,
                    record.message or "",
                ]
            )
    return report_path
