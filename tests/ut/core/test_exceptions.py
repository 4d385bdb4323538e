"""异常体系测试"""

from __future__ import annotations

import inspect

import pytest

from fersk.core.exceptions import (
    CommandFailedError,
    FerskError,
    GitExitError,
    LockContendedError,
    SyncError,
    ValidationError,
)


class TestExitCodes:
    def test_generic(self) -> None:
        assert ValidationError("bad").exit_code == 1
        assert ValidationError("bad").code == "VALIDATION_ERROR"

    def test_validation_error_takes_message_only(self) -> None:
        assert list(inspect.signature(ValidationError).parameters) == ["message"]

    def test_lock_contended(self) -> None:
        e = LockContendedError("/w/.locks/a.pid", 42)
        assert e.exit_code == 75
        assert "pid=42" in str(e)

    @pytest.mark.parametrize("rc,expected", [(3, 3), (255, 255), (None, 1), (0, 1)])
    def test_command_failed(self, rc, expected) -> None:
        assert CommandFailedError(rc).exit_code == expected


class TestMessages:
    def test_git_exit_signaled(self) -> None:
        e = GitExitError("fetch", None, "killed")
        assert e.returncode is None
        assert str(e) == "git fetch 失败 (rc=未知): killed"

    def test_sync_error_names_stage(self) -> None:
        cause = GitExitError("checkout", 1)
        e = SyncError("checkout", cause)
        assert isinstance(e, FerskError)
        assert e.cause is cause
        assert str(e).startswith("同步失败 [checkout]")
