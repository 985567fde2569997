"""Tests for ChezmoiService (core/service.py).

Uses a mock backend — no real chezmoi or git process is started.

Coverage:
* Read-only gate on every mutation, raised before the backend is touched.
* Target-path validation on add.
* Status aggregation and its degradation paths.
* Files / info dispatch.
* Action dispatch and result messages.
* Interactive handles under both modes.
* Archive path construction.
* Command catalogue.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from chezit.core.models import (
    ActionKind,
    ActionRequest,
    AddOptions,
    CommandCategory,
    EntryFilter,
    EntryType,
    FileKind,
    FileStatus,
    GitCommit,
    GitFile,
    GitInfo,
    InfoFormat,
    InfoView,
    InteractiveCommand,
    LoadFilesRequest,
    LoadInfoRequest,
    Mode,
)
from chezit.core.service import ARCHIVE_PREFIX, ChezmoiService
from chezit.exceptions import (
    ChezitError,
    CommandFailedError,
    InvalidAddOptionsError,
    OutsideTargetError,
    ReadOnlyError,
)
from chezit.infra.chezmoi_client import ChezmoiClient


TARGET = "/home/tester"


def _service(backend: MagicMock, mode: Mode = Mode.WRITE) -> ChezmoiService:
    return ChezmoiService(backend, mode, TARGET)


# ---------------------------------------------------------------------------
# Read-only gate
# ---------------------------------------------------------------------------

_MUTATIONS: list[tuple[str, tuple[object, ...], str]] = [
    ("re_add", (f"{TARGET}/.zshrc",), "re_add"),
    ("re_add_all", (), "re_add_all"),
    ("forget", (f"{TARGET}/.zshrc",), "forget"),
    ("add", (f"{TARGET}/.zshrc",), "add_with_options"),
    ("git_add", ("dot_zshrc",), "git_add"),
    ("git_add_all", (), "git_add_all"),
    ("git_reset", ("dot_zshrc",), "git_reset"),
    ("git_reset_all", (), "git_reset_all"),
    ("git_checkout_file", ("dot_zshrc",), "git_checkout_file"),
    ("git_soft_reset", (), "git_soft_reset"),
    ("git_commit", ("msg",), "commit"),
    ("git_push", (), "push"),
    ("git_pull", (), "git_pull"),
]


class TestReadOnlyGate:
    @pytest.mark.parametrize(("method", "args", "backend_method"), _MUTATIONS)
    def test_mutation_rejected_without_backend_call(
        self,
        backend: MagicMock,
        method: str,
        args: tuple[object, ...],
        backend_method: str,
    ) -> None:
        service = _service(backend, Mode.READ_ONLY)
        with pytest.raises(ReadOnlyError, match="read-only"):
            getattr(service, method)(*args)
        getattr(backend, backend_method).assert_not_called()

    @pytest.mark.parametrize(("method", "args", "backend_method"), _MUTATIONS)
    def test_mutation_delegates_in_write_mode(
        self,
        backend: MagicMock,
        method: str,
        args: tuple[object, ...],
        backend_method: str,
    ) -> None:
        getattr(_service(backend), method)(*args)
        getattr(backend, backend_method).assert_called_once()

    def test_read_only_error_carries_hint(self, backend: MagicMock) -> None:
        with pytest.raises(ReadOnlyError) as exc_info:
            _service(backend, Mode.READ_ONLY).git_push()
        assert exc_info.value.hint is not None
        assert "mode: write" in exc_info.value.hint

    def test_git_fetch_allowed_when_read_only(self, backend: MagicMock) -> None:
        _service(backend, Mode.READ_ONLY).git_fetch()
        backend.git_fetch.assert_called_once_with()

    def test_reads_allowed_when_read_only(self, backend: MagicMock) -> None:
        backend.diff.return_value = "diff"
        backend.cat_config.return_value = "mode: file"
        service = _service(backend, Mode.READ_ONLY)
        assert service.diff(f"{TARGET}/.zshrc") == "diff"
        assert service.cat_config() == "mode: file"

    def test_is_read_only(self, backend: MagicMock) -> None:
        assert _service(backend, Mode.READ_ONLY).is_read_only() is True
        assert _service(backend).is_read_only() is False


class TestAdd:
    def test_outside_target_rejected(self, backend: MagicMock) -> None:
        with pytest.raises(OutsideTargetError):
            _service(backend).add("/etc/passwd")
        backend.add_with_options.assert_not_called()

    def test_lookalike_prefix_rejected(self, backend: MagicMock) -> None:
        with pytest.raises(OutsideTargetError):
            _service(backend).add(f"{TARGET}2/.zshrc")
        backend.add_with_options.assert_not_called()

    def test_default_options(self, backend: MagicMock) -> None:
        _service(backend).add(f"{TARGET}/.zshrc")
        backend.add_with_options.assert_called_once_with(f"{TARGET}/.zshrc", AddOptions())

    def test_options_forwarded(self, backend: MagicMock) -> None:
        opts = AddOptions(encrypt=True)
        _service(backend).add(f"{TARGET}/.ssh/config", opts)
        backend.add_with_options.assert_called_once_with(f"{TARGET}/.ssh/config", opts)

    def test_read_only_wins_over_path_check(self, backend: MagicMock) -> None:
        with pytest.raises(ReadOnlyError):
            _service(backend, Mode.READ_ONLY).add("/etc/passwd")

    def test_conflicting_options_reject_before_process(self) -> None:
        with patch("chezit.infra.chezmoi_client.subprocess.run") as mock_run:
            service = ChezmoiService(ChezmoiClient(), Mode.WRITE, TARGET)
            with pytest.raises(InvalidAddOptionsError):
                service.add(f"{TARGET}/.zshrc", AddOptions(template=True, auto_template=True))
        mock_run.assert_not_called()


# ---------------------------------------------------------------------------
# Aggregated reads
# ---------------------------------------------------------------------------

class TestLoadStatus:
    def test_read_only_skips_git(self, backend: MagicMock) -> None:
        backend.status.return_value = [FileStatus(path=f"{TARGET}/.zshrc", source_status="M")]
        snapshot = _service(backend, Mode.READ_ONLY).load_status()

        assert len(snapshot.files) == 1
        assert snapshot.staged == ()
        assert snapshot.unstaged == ()
        assert snapshot.git_info == GitInfo()
        backend.git_status_files.assert_not_called()
        backend.git_branch_info.assert_not_called()

    def test_write_mode_combines_git_state(self, backend: MagicMock) -> None:
        staged = [GitFile(path="dot_zshrc", status_code="M")]
        unstaged = [GitFile(path="dot_new", status_code="U")]
        backend.git_status_files.return_value = (staged, unstaged)
        backend.git_branch_info.return_value = GitInfo(branch="main", remote="origin", ahead=1)

        snapshot = _service(backend).load_status()
        assert snapshot.staged == tuple(staged)
        assert snapshot.unstaged == tuple(unstaged)
        assert snapshot.git_info.branch == "main"

    def test_git_status_failure_degrades(self, backend: MagicMock) -> None:
        backend.status.return_value = [FileStatus(path=f"{TARGET}/.zshrc")]
        backend.git_status_files.side_effect = CommandFailedError("git status", "not a git repository")

        snapshot = _service(backend).load_status()
        assert len(snapshot.files) == 1
        assert snapshot.staged == ()
        assert snapshot.git_info == GitInfo()
        backend.git_branch_info.assert_not_called()

    def test_branch_failure_keeps_git_files(self, backend: MagicMock) -> None:
        backend.git_status_files.return_value = ([GitFile(path="a", status_code="A")], [])
        backend.git_branch_info.side_effect = CommandFailedError("git branch", "detached")

        snapshot = _service(backend).load_status()
        assert snapshot.staged == (GitFile(path="a", status_code="A"),)
        assert snapshot.git_info == GitInfo()

    def test_chezmoi_status_failure_propagates(self, backend: MagicMock) -> None:
        backend.status.side_effect = CommandFailedError("status", "boom")
        with pytest.raises(CommandFailedError):
            _service(backend).load_status()


class TestLoadFiles:
    def test_managed_passes_filter(self, backend: MagicMock) -> None:
        backend.managed_with_filter.return_value = [f"{TARGET}/.zshrc"]
        entry_filter = EntryFilter(include=frozenset({EntryType.TEMPLATES}))

        snapshot = _service(backend).load_files(LoadFilesRequest(kind=FileKind.MANAGED, entry_filter=entry_filter))
        assert snapshot.kind is FileKind.MANAGED
        assert snapshot.files == (f"{TARGET}/.zshrc",)
        backend.managed_with_filter.assert_called_once_with(entry_filter)

    def test_ignored_without_filter(self, backend: MagicMock) -> None:
        backend.ignored.return_value = []
        _service(backend).load_files(LoadFilesRequest(kind=FileKind.IGNORED))
        backend.ignored.assert_called_once_with(None)

    def test_unmanaged_with_filter(self, backend: MagicMock) -> None:
        backend.unmanaged.return_value = [f"{TARGET}/notes.txt"]
        entry_filter = EntryFilter(exclude=frozenset({EntryType.DIRS}))
        snapshot = _service(backend, Mode.READ_ONLY).load_files(
            LoadFilesRequest(kind=FileKind.UNMANAGED, entry_filter=entry_filter)
        )
        assert snapshot.files == (f"{TARGET}/notes.txt",)
        backend.unmanaged.assert_called_once_with(entry_filter)

    def test_managed_files_default_filter(self, backend: MagicMock) -> None:
        backend.managed_with_filter.return_value = []
        _service(backend).managed_files()
        backend.managed_with_filter.assert_called_once_with(EntryFilter())


class TestLoadInfo:
    def test_config_ignores_format(self, backend: MagicMock) -> None:
        backend.cat_config.return_value = "mode: file\n"
        snapshot = _service(backend).load_info(LoadInfoRequest(view=InfoView.CONFIG, format=InfoFormat.JSON))
        assert snapshot.view is InfoView.CONFIG
        assert snapshot.content == "mode: file\n"
        backend.dump_config.assert_not_called()

    @pytest.mark.parametrize("fmt", list(InfoFormat))
    def test_full_honours_format(self, backend: MagicMock, fmt: InfoFormat) -> None:
        backend.dump_config.return_value = "cfg"
        snapshot = _service(backend).load_info(LoadInfoRequest(view=InfoView.FULL, format=fmt))
        assert snapshot.content == "cfg"
        backend.dump_config.assert_called_once_with(fmt)

    def test_data_json(self, backend: MagicMock) -> None:
        backend.data.return_value = '{"chezmoi": {}}'
        snapshot = _service(backend).load_info(LoadInfoRequest(view=InfoView.DATA, format=InfoFormat.JSON))
        assert snapshot.content == '{"chezmoi": {}}'
        backend.data.assert_called_once_with(InfoFormat.JSON)

    def test_doctor(self, backend: MagicMock) -> None:
        backend.doctor.return_value = "ok  version"
        snapshot = _service(backend, Mode.READ_ONLY).load_info(LoadInfoRequest(view=InfoView.DOCTOR))
        assert snapshot.content == "ok  version"

    def test_unknown_view_is_empty_without_backend_call(self, backend: MagicMock) -> None:
        request = LoadInfoRequest(view="secrets")  # type: ignore[arg-type]
        snapshot = _service(backend).load_info(request)
        assert snapshot.content == ""
        assert backend.method_calls == []

    def test_backend_error_propagates(self, backend: MagicMock) -> None:
        backend.cat_config.side_effect = CommandFailedError("cat-config", "no config")
        with pytest.raises(CommandFailedError):
            _service(backend).load_info(LoadInfoRequest(view=InfoView.CONFIG))


class TestGitLogCommits:
    def test_parses_backend_log(self, backend: MagicMock) -> None:
        backend.git_log.return_value = "abc1234 first\r\ndef5678 second\n"
        assert _service(backend, Mode.READ_ONLY).git_log_commits() == [
            GitCommit(hash="abc1234", message="first"),
            GitCommit(hash="def5678", message="second"),
        ]


# ---------------------------------------------------------------------------
# Action dispatch
# ---------------------------------------------------------------------------

class TestRunAction:
    @pytest.mark.parametrize(
        ("request_", "backend_method", "message"),
        [
            (ActionRequest(kind=ActionKind.RE_ADD, path=f"{TARGET}/.zshrc"), "re_add", f"Re-added {TARGET}/.zshrc"),
            (ActionRequest(kind=ActionKind.FORGET, path=f"{TARGET}/.zshrc"), "forget", f"Forgot {TARGET}/.zshrc"),
            (ActionRequest(kind=ActionKind.ADD, path=f"{TARGET}/.zshrc"), "add_with_options", f"Added {TARGET}/.zshrc"),
            (ActionRequest(kind=ActionKind.GIT_ADD, path="dot_zshrc"), "git_add", "Staged dot_zshrc"),
            (ActionRequest(kind=ActionKind.GIT_ADD_ALL), "git_add_all", "Staged all changes"),
            (ActionRequest(kind=ActionKind.GIT_RESET, path="dot_zshrc"), "git_reset", "Unstaged dot_zshrc"),
            (ActionRequest(kind=ActionKind.GIT_RESET_ALL), "git_reset_all", "Unstaged all changes"),
            (ActionRequest(kind=ActionKind.GIT_COMMIT, commit_message="msg"), "commit", "Committed"),
            (ActionRequest(kind=ActionKind.GIT_PUSH), "push", "Pushed"),
        ],
    )
    def test_dispatch(
        self,
        backend: MagicMock,
        request_: ActionRequest,
        backend_method: str,
        message: str,
    ) -> None:
        result = _service(backend).run_action(request_)
        assert result.kind is request_.kind
        assert result.message == message
        getattr(backend, backend_method).assert_called_once()

    def test_commit_message_forwarded(self, backend: MagicMock) -> None:
        _service(backend).run_action(ActionRequest(kind=ActionKind.GIT_COMMIT, commit_message="update zshrc"))
        backend.commit.assert_called_once_with("update zshrc")

    def test_re_add_all_uses_output(self, backend: MagicMock) -> None:
        backend.re_add_all.return_value = "  re-added 3 files\n"
        result = _service(backend).run_action(ActionRequest(kind=ActionKind.RE_ADD_ALL))
        assert result.message == "re-added 3 files"

    def test_re_add_all_default_message(self, backend: MagicMock) -> None:
        backend.re_add_all.return_value = ""
        result = _service(backend).run_action(ActionRequest(kind=ActionKind.RE_ADD_ALL))
        assert result.message == "Re-added all managed files"

    def test_read_only_gate_applies(self, backend: MagicMock) -> None:
        with pytest.raises(ReadOnlyError):
            _service(backend, Mode.READ_ONLY).run_action(ActionRequest(kind=ActionKind.GIT_PUSH))
        backend.push.assert_not_called()

    def test_add_action_validates_path(self, backend: MagicMock) -> None:
        with pytest.raises(OutsideTargetError):
            _service(backend).run_action(ActionRequest(kind=ActionKind.ADD, path="/tmp/elsewhere"))
        backend.add_with_options.assert_not_called()


# ---------------------------------------------------------------------------
# Interactive handles
# ---------------------------------------------------------------------------

_GATED_BUILDERS: list[tuple[str, tuple[str, ...]]] = [
    ("apply_cmd", (f"{TARGET}/.zshrc",)),
    ("apply_all_cmd", ()),
    ("apply_refresh_cmd", ()),
    ("update_cmd", ()),
    ("init_cmd", ()),
    ("edit_cmd", (f"{TARGET}/.zshrc",)),
    ("edit_source_cmd", ()),
]

_UNGATED_BUILDERS = [
    "apply_dry_run_cmd",
    "apply_refresh_dry_run_cmd",
    "edit_config_cmd",
    "edit_config_template_cmd",
]


class TestInteractive:
    @pytest.mark.parametrize(("method", "args"), _GATED_BUILDERS)
    def test_none_when_read_only(self, backend: MagicMock, method: str, args: tuple[str, ...]) -> None:
        assert getattr(_service(backend, Mode.READ_ONLY), method)(*args) is None
        getattr(backend, method).assert_not_called()

    @pytest.mark.parametrize(("method", "args"), _GATED_BUILDERS)
    def test_handle_in_write_mode(self, backend: MagicMock, method: str, args: tuple[str, ...]) -> None:
        handle = InteractiveCommand(argv=("chezmoi", "x"))
        getattr(backend, method).return_value = handle
        assert getattr(_service(backend), method)(*args) is handle

    @pytest.mark.parametrize("method", _UNGATED_BUILDERS)
    def test_available_when_read_only(self, backend: MagicMock, method: str) -> None:
        handle = InteractiveCommand(argv=("chezmoi", "x"))
        getattr(backend, method).return_value = handle
        assert getattr(_service(backend, Mode.READ_ONLY), method)() is handle


# ---------------------------------------------------------------------------
# Archive
# ---------------------------------------------------------------------------

class TestArchive:
    def test_output_dir_under_home(self, backend: MagicMock, fake_home: Path) -> None:
        expected = os.path.join(str(fake_home), ".local", "share", "chezit", "archives")
        assert _service(backend).archive_output_dir() == expected

    def test_writes_timestamped_archive(self, backend: MagicMock, fake_home: Path) -> None:
        path = _service(backend, Mode.READ_ONLY).archive()

        directory, name = os.path.split(path)
        assert os.path.isdir(directory)
        assert directory.startswith(str(fake_home))
        assert name.startswith(ARCHIVE_PREFIX)
        assert name.endswith(".tar.gz")
        backend.archive.assert_called_once_with(path)

    def test_directory_creation_failure(self, backend: MagicMock, fake_home: Path) -> None:
        with patch("chezit.core.service.os.makedirs", side_effect=PermissionError("denied")):
            with pytest.raises(ChezitError, match="create archive directory"):
                _service(backend).archive()
        backend.archive.assert_not_called()

    def test_backend_failure_propagates(self, backend: MagicMock, fake_home: Path) -> None:
        backend.archive.side_effect = CommandFailedError("archive", "boom")
        with pytest.raises(CommandFailedError):
            _service(backend).archive()


# ---------------------------------------------------------------------------
# Command catalogue
# ---------------------------------------------------------------------------

class TestAvailableCommands:
    def test_write_mode_includes_edit_entries(self, backend: MagicMock) -> None:
        labels = [c.label for c in _service(backend).available_commands()]
        assert "Apply" in labels
        assert "Edit Source" in labels
        assert "Edit Config" in labels
        assert "Edit Config Template" in labels

    def test_read_only_hides_apply(self, backend: MagicMock) -> None:
        commands = _service(backend, Mode.READ_ONLY).available_commands()
        categories = {c.category for c in commands}
        assert CommandCategory.APPLY not in categories
        assert "Edit Source" not in [c.label for c in commands]

    def test_edit_entries_follow_backend_handles(self, backend: MagicMock) -> None:
        backend.edit_source_cmd.return_value = None
        backend.edit_config_cmd.return_value = None
        labels = [c.label for c in _service(backend).available_commands()]
        assert "Edit Source" not in labels
        assert "Edit Config" not in labels
        assert "Edit Config Template" in labels
