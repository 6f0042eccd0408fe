"""CLI surface, routing, and exit code tests."""

from __future__ import annotations

import asyncio
import json
import os
import select
import shlex
import signal
import subprocess
import sys
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

import trydir.cli as cli_mod
from trydir.config import TryConfig
from trydir.db.store import open_store
from trydir.errors import StoreError
from trydir.models.types import FolderRecord
from trydir.selection import PromptStrategy

runner = CliRunner()

T1 = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)


class MemoryStore:
    """Dict-backed stand-in for FolderStore."""

    def __init__(self, records: list[FolderRecord] | None = None, fail_update: bool = False):
        self.records = {r.id: r for r in records or []}
        self.fail_update = fail_update
        self.writes = 0

    async def list_all(self):
        return sorted(
            self.records.values(),
            key=lambda r: (r.last_opened, r.times_opened),
            reverse=True,
        )

    async def insert(self, record):
        folder_id = f"folder:n{len(self.records) + 1}"
        self.records[folder_id] = record.model_copy(update={"id": folder_id})
        self.writes += 1
        return folder_id

    async def update_usage(self, folder_id, times_opened, last_opened):
        if self.fail_update:
            raise StoreError("database is locked")
        updated = self.records[folder_id].model_copy(
            update={"times_opened": times_opened, "last_opened": last_opened}
        )
        self.records[folder_id] = updated
        self.writes += 1
        return updated


def _record(key: str, name: str, times_opened: int, last_opened: datetime, base) -> FolderRecord:
    path = base / f"2026-10-01-{name}"
    path.mkdir(parents=True, exist_ok=True)
    return FolderRecord(
        id=f"folder:{key}",
        path=str(path),
        name=name,
        date_created="2026-10-01",
        created_at=T1,
        times_opened=times_opened,
        last_opened=last_opened,
    )


@pytest.fixture
def base_dir(tmp_path, monkeypatch):
    base = tmp_path / "try"
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("TRY_BASE_DIR", str(base))
    monkeypatch.setenv("TRY_INTERACTIVE", "never")
    return base


def _use_store(monkeypatch, store: MemoryStore) -> None:
    @asynccontextmanager
    async def fake_get_store(config):
        yield store

    monkeypatch.setattr(cli_mod, "_get_store", fake_get_store)


@pytest.fixture
def alpha_store(base_dir):
    return MemoryStore(
        [
            _record("a", "alpha", 5, T1, base_dir),
            _record("b", "alpha-beta", 1, T1 + timedelta(hours=2), base_dir),
        ]
    )


def _last_line(output: str) -> str:
    return output.strip().splitlines()[-1]


# ============================================================
# HELP / ROUTING
# ============================================================


def test_help_lists_commands():
    result = runner.invoke(cli_mod.app, ["--help"])
    assert result.exit_code == 0
    assert "open" in result.stdout
    assert "init" in result.stdout
    assert "list" in result.stdout


def test_no_arguments_is_usage_error():
    result = runner.invoke(cli_mod.app, [])
    assert result.exit_code == 1


def test_bare_query_routes_to_open(base_dir, monkeypatch, capsys):
    store = MemoryStore()
    _use_store(monkeypatch, store)
    monkeypatch.setattr(sys, "argv", ["try", "new", "idea"])

    cli_mod.app(standalone_mode=False)

    out = capsys.readouterr().out
    assert out.startswith("cd ")
    assert len(out.strip().splitlines()) == 1
    assert sys.argv == ["try", "new", "idea"]
    (record,) = store.records.values()
    assert record.name == "new idea"


# ============================================================
# OPEN
# ============================================================


def test_open_creates_folder(base_dir, monkeypatch):
    store = MemoryStore()
    _use_store(monkeypatch, store)

    result = runner.invoke(cli_mod.app, ["open", "first", "idea"])

    assert result.exit_code == 0
    (record,) = store.records.values()
    assert record.name == "first idea"
    assert record.times_opened == 1
    assert _last_line(result.stdout) == f"cd {shlex.quote(record.path)}"
    assert (base_dir / record.path.rsplit("/", 1)[-1]).is_dir()


def test_open_single_match_reuses(base_dir, monkeypatch, alpha_store):
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["open", "beta"])

    assert result.exit_code == 0
    reused = alpha_store.records["folder:b"]
    assert reused.times_opened == 2
    assert _last_line(result.stdout) == f"cd {shlex.quote(reused.path)}"


def test_open_non_interactive_picks_top_ranked(base_dir, monkeypatch, alpha_store):
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["open", "alpha"])

    assert result.exit_code == 0
    assert alpha_store.records["folder:a"].times_opened == 6
    assert alpha_store.records["folder:b"].times_opened == 1
    assert _last_line(result.stdout) == f"cd {shlex.quote(alpha_store.records['folder:a'].path)}"


def test_open_interactive_choice(base_dir, monkeypatch, alpha_store):
    monkeypatch.setenv("TRY_INTERACTIVE", "always")
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["open", "alpha"], input="2\n")

    assert result.exit_code == 0
    assert alpha_store.records["folder:b"].times_opened == 2
    assert _last_line(result.stdout) == f"cd {shlex.quote(alpha_store.records['folder:b'].path)}"


def test_open_interactive_cancel(base_dir, monkeypatch, alpha_store):
    monkeypatch.setenv("TRY_INTERACTIVE", "always")
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["open", "alpha"], input="q\n")

    assert result.exit_code == 1
    assert "cd " not in result.stdout
    assert alpha_store.writes == 0


def test_open_store_failure_emits_no_path(base_dir, monkeypatch, alpha_store):
    alpha_store.fail_update = True
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["open", "beta"])

    assert result.exit_code == 1
    assert "cd " not in result.stdout


def test_open_existing_directory_collision(base_dir, monkeypatch):
    store = MemoryStore()
    _use_store(monkeypatch, store)
    first = runner.invoke(cli_mod.app, ["open", "dup"])
    assert first.exit_code == 0

    store.records.clear()  # history lost, directory still on disk
    second = runner.invoke(cli_mod.app, ["open", "dup"])
    assert second.exit_code == 1
    assert "cd " not in second.stdout


def test_open_blank_query(base_dir, monkeypatch):
    _use_store(monkeypatch, MemoryStore())
    result = runner.invoke(cli_mod.app, ["open", " "])
    assert result.exit_code == 1


def test_open_bad_config(base_dir, monkeypatch):
    monkeypatch.setenv("TRY_MAX_CHOICES", "0")
    result = runner.invoke(cli_mod.app, ["open", "x"])
    assert result.exit_code == 1


# ============================================================
# INIT
# ============================================================


def test_init_prints_snippet_without_store(base_dir, monkeypatch):
    def no_store(config):
        raise AssertionError("init must not open the store")

    monkeypatch.setattr(cli_mod, "_get_store", no_store)

    result = runner.invoke(cli_mod.app, ["init"])
    assert result.exit_code == 0
    assert "try() {" in result.stdout
    assert 'eval "$output"' in result.stdout


def test_init_fish(base_dir):
    result = runner.invoke(cli_mod.app, ["init", "--shell", "fish"])
    assert result.exit_code == 0
    assert "function try" in result.stdout


def test_init_unknown_shell(base_dir):
    result = runner.invoke(cli_mod.app, ["init", "--shell", "tcsh"])
    assert result.exit_code == 1


def test_init_write_config(base_dir, tmp_path):
    result = runner.invoke(cli_mod.app, ["init", "--write-config"])
    assert result.exit_code == 0
    assert (tmp_path / "home" / ".try" / "config.yaml").exists()


# ============================================================
# LIST
# ============================================================


def test_list_json_is_ranked(base_dir, monkeypatch, alpha_store):
    _use_store(monkeypatch, alpha_store)

    result = runner.invoke(cli_mod.app, ["list", "alpha", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [p["name"] for p in payload] == ["alpha", "alpha-beta"]
    assert payload[0]["score"] >= payload[1]["score"]
    assert alpha_store.writes == 0


def test_list_table(base_dir, monkeypatch, alpha_store):
    _use_store(monkeypatch, alpha_store)
    result = runner.invoke(cli_mod.app, ["list"])
    assert result.exit_code == 0
    assert "alpha-beta" in result.stdout


def test_list_empty(base_dir, monkeypatch):
    _use_store(monkeypatch, MemoryStore())
    result = runner.invoke(cli_mod.app, ["list"])
    assert result.exit_code == 0
    assert "No folders yet" in result.stdout


# ============================================================
# CTRL-C AT THE PROMPT (real process, real signal)
# ============================================================


async def _seed_history(config: TryConfig) -> None:
    async with open_store(config) as store:
        for key, name, times_opened, last_opened in (
            ("a", "alpha", 5, T1),
            ("b", "alpha-beta", 1, T1 + timedelta(hours=2)),
        ):
            record = _record(key, name, times_opened, last_opened, config.resolved_base_dir)
            await store.insert(record.model_copy(update={"id": None}))


async def _history(config: TryConfig) -> dict[str, int]:
    async with open_store(config) as store:
        return {r.name: r.times_opened for r in await store.list_all()}


def _read_until(stream, marker: bytes, timeout: float) -> bytes:
    seen = b""
    deadline = time.monotonic() + timeout
    while marker not in seen:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        ready, _, _ = select.select([stream], [], [], remaining)
        if not ready:
            break
        chunk = os.read(stream.fileno(), 4096)
        if not chunk:
            break
        seen += chunk
    return seen


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_single_sigint_at_prompt_cancels(tmp_path):
    base = tmp_path / "try"
    config = TryConfig(base_dir=str(base))
    asyncio.run(_seed_history(config))

    env = {
        **{k: v for k, v in os.environ.items() if not k.startswith("TRY_")},
        "HOME": str(tmp_path / "home"),
        "TRY_BASE_DIR": str(base),
        "TRY_INTERACTIVE": "always",
        "PYTHONPATH": os.pathsep.join(
            [str(Path(__file__).resolve().parents[1]), os.environ.get("PYTHONPATH", "")]
        ),
    }
    proc = subprocess.Popen(
        [sys.executable, "-c", "from trydir.cli import app; app()", "alpha"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
    )
    try:
        shown = _read_until(proc.stderr, b"Choice", timeout=30)
        assert b"Choice" in shown, shown.decode(errors="replace")

        proc.send_signal(signal.SIGINT)
        out, err = proc.communicate(timeout=10)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.communicate()

    assert proc.returncode == 1, (shown + err).decode(errors="replace")
    assert b"cd " not in out
    assert b"Cancelled." in err
    assert asyncio.run(_history(config)) == {"alpha": 5, "alpha-beta": 1}


def test_prompt_runs_outside_event_loop(base_dir, monkeypatch, alpha_store):
    monkeypatch.setenv("TRY_INTERACTIVE", "always")
    _use_store(monkeypatch, alpha_store)
    seen = {}

    def choose(self, query, options):
        try:
            asyncio.get_running_loop()
            seen["loop"] = True
        except RuntimeError:
            seen["loop"] = False
        return 0

    monkeypatch.setattr(PromptStrategy, "choose", choose)

    result = runner.invoke(cli_mod.app, ["open", "alpha"])
    assert result.exit_code == 0
    assert seen == {"loop": False}
