"""命令行入口。"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from card_sync.core.config import CatalogConfig, SyncConfig
from card_sync.core.exceptions import CardSyncError
from card_sync.core.progress import ProgressUpdate
from card_sync.core.report import write_csv_report
from card_sync.net.catalog import collect_cards_by_set
from card_sync.net.fetcher import HttpFetcher, open_session
from card_sync.processing.pipeline import sync_cards_page
from card_sync.utils.logging import setup_logging

app = typer.Typer(help="卡牌目录图片同步到对象存储 CDN 的工具。")

LOGGER = logging.getLogger(__name__)


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("同步卡牌", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _load_config(**overrides) -> SyncConfig:
    try:
        return SyncConfig.from_env(**overrides)
    except CardSyncError as exc:
        typer.echo(f"配置错误：{exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("upload-images")
def upload_images(
    page: int = typer.Option(..., "--page", "-p", min=1, help="要同步的目录页码（从 1 开始）"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", "-c", min=1, help="并发上限，默认 4"),
    report: Optional[Path] = typer.Option(None, "--report", help="将每张卡牌的结果写入 CSV"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出 DEBUG 日志"),
) -> None:
    """同步指定目录页的卡牌图片：缺失的下载、转码为 WebP 并上传。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    overrides = {"concurrency": concurrency} if concurrency else {}
    config = _load_config(**overrides)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )

    try:
        with progress:
            result = asyncio.run(
                sync_cards_page(config, page, progress_callback=_build_progress_callback(progress))
            )
    except CardSyncError as exc:
        LOGGER.error("同步失败：%s", exc)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"同步完成：上传 {len(result.uploaded)} 张，已存在 {len(result.existing)} 张，"
        f"跳过 {len(result.skipped)} 张，失败 {len(result.failed)} 张。"
    )
    if report:
        report_path = write_csv_report(result.all_outcomes(), report.expanduser().resolve())
        typer.echo(f"报告文件：{report_path}")


@app.command("update-data")
def update_data(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出 DEBUG 日志"),
) -> None:
    """读取全部目录分页并按系列统计卡牌数量。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    try:
        config = CatalogConfig.from_env()
    except CardSyncError as exc:
        typer.echo(f"配置错误：{exc}", err=True)
        raise typer.Exit(code=1) from exc

    async def collect() -> dict:
        async with open_session() as session:
            return await collect_cards_by_set(HttpFetcher(session), config)

    try:
        grouped = asyncio.run(collect())
    except CardSyncError as exc:
        LOGGER.error("读取目录失败：%s", exc)
        raise typer.Exit(code=1) from exc

    for set_id, entries in grouped.items():
        typer.echo(f"{set_id}: {len(entries)}")


if __name__ == "__main__":
    app()
