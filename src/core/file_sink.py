"""
파일 저장: staging → publish (write-then-publish)

규칙:
- 새 파일만 생성: O_CREAT | O_EXCL, 게시는 os.link (기존 파일 덮어쓰기 없음)
- 게시 전 바이트는 staging 디렉토리에만 존재 → 갤러리에 보이지 않음
- 모든 종료 경로에서 핸들 close, commit 안 된 staging 파일 삭제
- 삭제 실패 시 warning 로그 + leftover 경로 기록 (수동 정리 필요)
- 취소 시 진행 중인 스레드 작업이 끝난 뒤 정리 (게시 도중이면 게시를 되돌림)

파일시스템 안정성 (best-effort):
- fsync로 가능한 환경에서 내구성 강화 (파일 + 디렉토리)
- fsync 실패 시 경고 남기고 계속 진행
- staging 디렉토리와 업로드 루트는 같은 파일시스템이어야 함 (link)
"""

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO

from src.domain.constants import STAGING_SUFFIX
from src.domain.errors import ErrorCodes, UploadRejectError
from src.domain.schemas import StoredFile

logger = logging.getLogger(__name__)


# =============================================================================
# fsync helpers
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    link 후 디렉토리 엔트리까지 내구성을 강화하려면 필요.
    Linux에서 주로 유효하며, 일부 OS/파일시스템에서는 지원되지 않을 수 있음.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Publish durability may not be guaranteed."
        )


def _storage_error(operation: str, path: Path, error: OSError) -> UploadRejectError:
    return UploadRejectError(
        ErrorCodes.STORAGE_ERROR,
        operation=operation,
        path=str(path),
        errno=error.errno,
        error=str(error),
    )


# =============================================================================
# File Sink
# =============================================================================


class FileSink:
    """
    생성된 이름으로 새 파일 하나를 쓰는 싱크.

    Usage:
        async with FileSink(upload_root, staging_dir, name) as sink:
            await sink.write(chunk)
            stored = await sink.commit()

    commit 없이 블록을 빠져나가면 (예외, 취소 포함) staging 파일은 삭제된다.
    """

    def __init__(
        self,
        upload_root: Path,
        staging_dir: Path,
        name: str,
        fsync: bool = True,
    ):
        """
        Args:
            upload_root: 게시 대상 디렉토리 (갤러리)
            staging_dir: 게시 전 임시 디렉토리
            name: 생성된 저장 파일명
            fsync: 게시 전 파일/디렉토리 fsync 여부
        """
        self.name = name
        self.upload_root = upload_root
        self.staging_dir = staging_dir
        self.final_path = upload_root / name
        self.staging_path = staging_dir / f"{name}{STAGING_SUFFIX}"
        self.fsync = fsync
        self.bytes_written = 0
        self.committed = False
        self.leftover: Path | None = None
        self._file: BinaryIO | None = None
        self._created = False

    # -------------------------------------------------------------------------
    # Context manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "FileSink":
        try:
            await self._run_in_thread(self._open)
        except asyncio.CancelledError:
            # 스레드가 staging 파일을 이미 만들었을 수 있음 (__aexit__는 호출되지 않음)
            self._release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        # 취소 중에도 정리가 끝나도록 await 없이 동기 처리
        self._release()
        return False

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def write(self, chunk: bytes) -> None:
        """
        청크 하나를 순서대로 기록.

        Raises:
            UploadRejectError: STORAGE_ERROR
        """
        if self._file is None:
            raise RuntimeError("FileSink is not open")
        try:
            await self._run_in_thread(self._write_chunk, chunk)
        except OSError as e:
            raise _storage_error("write", self.staging_path, e) from e
        self.bytes_written += len(chunk)

    async def commit(self) -> StoredFile:
        """
        staging 파일을 업로드 루트에 게시.

        취소되면 게시를 되돌린다 (갤러리에 파일을 남기지 않음).

        Returns:
            StoredFile

        Raises:
            UploadRejectError: STORAGE_ERROR (이름 충돌 포함)
        """
        if self._file is None:
            raise RuntimeError("FileSink is not open")
        try:
            await self._run_in_thread(self._publish)
        except asyncio.CancelledError:
            if self.committed:
                self._unpublish()
            raise
        return StoredFile(
            name=self.name,
            size=self.bytes_written,
            path=self.final_path,
        )

    async def _run_in_thread(self, func: Callable[..., None], *args: Any) -> None:
        """
        블로킹 작업을 스레드에서 실행.

        스레드는 중단할 수 없으므로 취소되어도 작업이 끝날 때까지 기다린 뒤
        CancelledError를 다시 던진다. 호출자는 스레드가 남긴 상태를 정리할 수 있다.
        """
        task = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            await asyncio.wait([task])
            if not task.cancelled() and task.exception() is not None:
                logger.warning(
                    f"{func.__name__} failed after cancellation for {self.staging_path}: "
                    f"{task.exception()}"
                )
            raise

    # -------------------------------------------------------------------------
    # Blocking internals (스레드에서 실행)
    # -------------------------------------------------------------------------

    def _open(self) -> None:
        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
            fd = os.open(self.staging_path, flags, 0o644)
        except OSError as e:
            raise _storage_error("open", self.staging_path, e) from e

        self._created = True
        self._file = os.fdopen(fd, "wb")

    def _write_chunk(self, chunk: bytes) -> None:
        if self._file is None:
            raise RuntimeError("FileSink is not open")
        self._file.write(chunk)

    def _publish(self) -> None:
        handle = self._file
        if handle is None:
            raise RuntimeError("FileSink is not open")
        try:
            handle.flush()  # Python 버퍼 → OS 버퍼
            if self.fsync:
                try:
                    os.fsync(handle.fileno())  # OS 버퍼 → 디스크
                except OSError as e:
                    logger.warning(
                        f"File fsync failed for {self.staging_path}: {e}. "
                        f"Data may not be durable on power loss."
                    )
            handle.close()
            self._file = None

            self.upload_root.mkdir(parents=True, exist_ok=True)
            # link는 대상이 있으면 FileExistsError → 덮어쓰기 없음
            os.link(self.staging_path, self.final_path)
        except OSError as e:
            raise _storage_error("publish", self.final_path, e) from e

        self.committed = True

        try:
            self.staging_path.unlink()
        except OSError as e:
            # 게시는 성공. staging 잔여물은 purge_staging 스크립트 대상
            logger.warning(f"Staging cleanup failed for {self.staging_path}: {e}")

        if self.fsync:
            _fsync_dir(self.upload_root)

    def _release(self) -> None:
        """핸들 close + commit 안 된 staging 파일 삭제."""
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning(f"Close failed for {self.staging_path}: {e}")
            self._file = None

        if self.committed or not self._created:
            return

        try:
            self.staging_path.unlink(missing_ok=True)
        except OSError as e:
            self.leftover = self.staging_path
            logger.warning(
                f"Partial upload cleanup failed for {self.staging_path}: {e}. "
                f"Manual cleanup may be required: rm {self.staging_path}"
            )

    def _unpublish(self) -> None:
        """취소된 commit 되돌리기: 게시된 파일 삭제."""
        try:
            self.final_path.unlink()
        except OSError as e:
            self.leftover = self.final_path
            logger.warning(
                f"Rollback of cancelled publish failed for {self.final_path}: {e}. "
                f"Manual cleanup may be required: rm {self.final_path}"
            )
            return
        self.committed = False
