"""工作目录互斥锁

每个源仓库标识对应一个锁文件 <work_root>/.locks/<identity>.pid，
内容为持有者的 PID。同一时刻最多一个进程持有，跨进程生效。

判定规则:
  - 文件不存在、内容为空或无法解析、记录的进程已退出 → 可获取（回收陈旧锁）
  - 记录的进程仍存活 → LockContendedError

"读取 PID → 判断存活 → 写入自己的 PID" 在锁文件的 flock 保护下完成，
两个进程不会同时认为自己持有锁。持有者退出时 flock 由操作系统释放，
残留的锁文件由下一次获取时的 PID 检查回收。

用法:
    with WorkspaceLock(paths.lock_path):
        ...  # 同步 + 执行命令
"""

from __future__ import annotations

import errno
import fcntl
import logging
import os
from pathlib import Path
from types import TracebackType

from fersk.core.exceptions import LockContendedError, LockError

logger = logging.getLogger(__name__)

LOCKS_DIRNAME = ".locks"
LOCK_SUFFIX = ".pid"

# 锁文件在获取过程中被其他进程替换时的最大重试次数
_MAX_ATTEMPTS = 10


def lock_path_for(work_root: Path, identity: str) -> Path:
    return work_root / LOCKS_DIRNAME / f"{identity}{LOCK_SUFFIX}"


def pid_alive(pid: int) -> bool:
    """判断进程是否存活"""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # 进程存在但属于其他用户
        return True
    except OSError:
        return False
    return True


def _parse_pid(text: str) -> int | None:
    text = text.strip()
    if not text:
        return None
    try:
        return int(text.split()[0])
    except ValueError:
        return None


def read_lock_owner(path: Path) -> int | None:
    """读取锁文件记录的 PID，文件不存在或内容无效返回 None"""
    try:
        return _parse_pid(path.read_text(encoding="utf-8"))
    except OSError:
        return None


class WorkspaceLock:
    """基于 PID 文件的进程级互斥锁

    状态: unlocked → acquiring → held → released
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.state = "unlocked"
        self._fd: int | None = None

    @property
    def held(self) -> bool:
        return self.state == "held"

    def acquire(self) -> WorkspaceLock:
        """获取锁，被存活进程持有时抛 LockContendedError（不等待）"""
        if self.held:
            return self
        self.state = "acquiring"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.state = "unlocked"
            raise LockError(f"无法创建锁目录: {self.path.parent}: {e}") from e

        try:
            for _ in range(_MAX_ATTEMPTS):
                fd = self._open_locked()
                if fd is not None:
                    break
            else:
                raise LockError(f"锁文件反复被替换，放弃获取: {self.path}")
            self._claim(fd)
        except BaseException:
            self.state = "unlocked"
            raise

        self._fd = fd
        self.state = "held"
        logger.info("已获取工作目录锁: %s (pid=%d)", self.path, os.getpid())
        return self

    def _open_locked(self) -> int | None:
        """打开锁文件并加 flock；文件在加锁期间被替换时返回 None 以便重试"""
        try:
            fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise LockError(f"无法创建锁文件: {self.path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            if e.errno in (errno.EWOULDBLOCK, errno.EAGAIN, errno.EACCES):
                raise LockContendedError(
                    str(self.path), read_lock_owner(self.path),
                ) from e
            raise LockError(f"锁文件加锁失败: {self.path}: {e}") from e

        # 前一个持有者可能在我们 open 之后删除了文件，此时锁住的是已脱离路径的 inode
        try:
            same = os.fstat(fd).st_ino == os.stat(self.path).st_ino
        except FileNotFoundError:
            same = False
        if not same:
            os.close(fd)
            return None
        return fd

    def _claim(self, fd: int) -> None:
        """在 flock 保护下检查旧 PID 并写入自己的 PID"""
        try:
            with os.fdopen(os.dup(fd), "r+", encoding="utf-8") as f:
                owner = _parse_pid(f.read())
                if owner is not None and owner != os.getpid() and pid_alive(owner):
                    raise LockContendedError(str(self.path), owner)
                if owner is not None and owner != os.getpid():
                    logger.warning("回收陈旧锁: %s (pid=%d 已退出)", self.path, owner)
                f.seek(0)
                f.truncate()
                f.write(f"{os.getpid()}\n")
                f.flush()
                os.fsync(f.fileno())
        except LockContendedError:
            os.close(fd)
            raise
        except OSError as e:
            os.close(fd)
            raise LockError(f"写入锁文件失败: {self.path}: {e}") from e

    def release(self) -> None:
        """释放锁（可重复调用）"""
        if self._fd is None:
            return
        try:
            # 先删文件再解锁，等待者不会拿到已删除文件上的锁
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("删除锁文件失败: %s: %s", self.path, e)
        finally:
            try:
                fcntl.flock(self._fd, fcntl.LOCK_UN)
            finally:
                os.close(self._fd)
                self._fd = None
                self.state = "released"
        logger.info("已释放工作目录锁: %s", self.path)

    def __enter__(self) -> WorkspaceLock:
        return self.acquire()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
