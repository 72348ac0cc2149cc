"""通过 aws CLI 上传到 S3 兼容对象存储。"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Protocol

from card_sync.core.config import StorageConfig
from card_sync.core.exceptions import UploadError

LOGGER = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500


class Uploader(Protocol):
    def upload(self, file_path: Path, key: str, content_type: str, cache_control: str) -> Awaitable[None]: ...


class AwsCliUploader:
    """每次上传启动一个独立的 ``aws s3 cp`` 子进程，并发调用互不影响。"""

    def __init__(self, storage: StorageConfig) -> None:
        self.storage = storage

    def build_command(self, file_path: Path, key: str, content_type: str, cache_control: str) -> list[str]:
        return [
            self.storage.aws_cli,
            "--endpoint-url",
            self.storage.endpoint_url,
            "s3",
            "cp",
            str(file_path),
            f"s3://{self.storage.bucket}/{key}",
            "--acl",
            "public-read",
            "--content-type",
            content_type,
            "--cache-control",
            cache_control,
        ]

    async def upload(self, file_path: Path, key: str, content_type: str, cache_control: str) -> None:
        """上传文件，子进程无法启动或返回非 0 时抛出 UploadError。"""

        command = self.build_command(file_path, key, content_type, cache_control)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise UploadError(f"无法启动上传命令 {command[0]}: {exc}") from exc

        stdout, stderr = await process.communicate()
        if stdout:
            LOGGER.debug("%s stdout: %s", command[0], stdout.decode(errors="replace").strip())

        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()[-STDERR_TAIL_CHARS:]
            raise UploadError(
                f"{command[0]} 退出码 {process.returncode}: {detail}",
                returncode=process.returncode,
            )
