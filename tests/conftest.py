"""
Shared fixtures for the repo-map test suite.

Provides test fixtures for:
- A deterministic scanner that needs no ast-grep install
- Temporary project trees
- Real git repositories (skipped when git is unavailable)
- Isolated configuration
"""

import re
import shutil
import subprocess
import threading
from pathlib import Path

import pytest

from repo_map.config import RepoMapConfig
from repo_map.errors import EngineError
from repo_map.models import (
    FileRecord,
    FileSymbols,
    ImportEdge,
    ImportKind,
    SymbolEntry,
    SymbolKind,
)
from repo_map.scanner import compute_hash

# Content marker that makes FakeScanner fail like a broken ast-grep run
ENGINE_FAILURE_MARKER = "@@engine-failure@@"


class FakeScanner:
    """Regex-based stand-in for AstGrepScanner.

    Understands a tiny subset of Python and JavaScript: top-level ``def``,
    ``class`` and ``function`` definitions plus ``import``/``from``/
    ``require`` statements. Records every scanned path.
    """

    _PY_DEF = re.compile(r"^def (\w+)", re.MULTILINE)
    _PY_CLASS = re.compile(r"^class (\w+)", re.MULTILINE)
    _PY_IMPORT = re.compile(r"^import ([\w.]+)", re.MULTILINE)
    _PY_FROM = re.compile(r"^from ([\w.]+) import", re.MULTILINE)
    _JS_FUNCTION = re.compile(r"^(export )?function (\w+)", re.MULTILINE)
    _JS_REQUIRE = re.compile(r"require\(['\"]([^'\"]+)['\"]\)")

    def __init__(self):
        self.scanned: list[str] = []
        self._lock = threading.Lock()

    def scan_file(self, file_path, root_path):
        path = Path(file_path)
        if not path.is_absolute():
            path = Path(root_path) / path

        language = {".py": "python", ".js": "javascript"}.get(path.suffix)
        if language is None:
            return None
        try:
            data = path.read_bytes()
        except OSError:
            return None

        with self._lock:
            self.scanned.append(
                path.resolve().relative_to(Path(root_path).resolve()).as_posix()
            )

        content = data.decode("utf-8")
        if ENGINE_FAILURE_MARKER in content:
            raise EngineError(path, "ast-grep exited with 2: parse error")

        symbols = FileSymbols()
        imports: list[ImportEdge] = []
        if language == "python":
            symbols.functions = self._entries(self._PY_DEF, content, SymbolKind.FUNCTION)
            symbols.classes = self._entries(self._PY_CLASS, content, SymbolKind.CLASS)
            for entry in symbols.functions + symbols.classes:
                entry.exported = not entry.name.startswith("_")
            symbols.exports = sorted(
                (
                    SymbolEntry(e.name, e.kind, e.line, exported=True)
                    for e in symbols.functions + symbols.classes
                    if e.exported
                ),
                key=lambda e: e.name,
            )
            imports = self._imports(self._PY_IMPORT, content, ImportKind.IMPORT)
            imports += self._imports(self._PY_FROM, content, ImportKind.FROM)
        else:
            symbols.functions = []
            for match in self._JS_FUNCTION.finditer(content):
                entry = SymbolEntry(
                    match.group(2),
                    SymbolKind.FUNCTION,
                    self._line(content, match.start()),
                    exported=bool(match.group(1)),
                )
                symbols.functions.append(entry)
                if entry.exported:
                    symbols.exports.append(
                        SymbolEntry(entry.name, entry.kind, entry.line, exported=True)
                    )
            imports = self._imports(self._JS_REQUIRE, content, ImportKind.REQUIRE)

        return FileRecord(
            hash=compute_hash(data),
            language=language,
            size=len(data),
            symbols=symbols,
            imports=imports,
        )

    @staticmethod
    def _line(content: str, offset: int) -> int:
        return content.count("\n", 0, offset) + 1

    def _entries(self, regex, content, kind):
        entries = [
            SymbolEntry(m.group(1), kind, self._line(content, m.start()))
            for m in regex.finditer(content)
        ]
        return sorted(entries, key=lambda e: e.name)

    def _imports(self, regex, content, kind):
        return [
            ImportEdge(m.group(1), kind, self._line(content, m.start()))
            for m in regex.finditer(content)
        ]


@pytest.fixture()
def fake_scanner() -> FakeScanner:
    """A fresh FakeScanner."""
    return FakeScanner()


@pytest.fixture()
def test_config() -> RepoMapConfig:
    """Configuration independent of the environment."""
    return RepoMapConfig(max_workers=2, engine_timeout_seconds=5, git_timeout_seconds=10)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep host configuration out of the tests."""
    for name in (
        "AI_STATE_DIR",
        "REPO_MAP_MAX_WORKERS",
        "REPO_MAP_ENGINE_TIMEOUT",
        "REPO_MAP_GIT_TIMEOUT",
        "REPO_MAP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Temporary project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_project(tmp_path) -> Path:
    """Create a small mixed Python/JavaScript project."""
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "web").mkdir()
    (root / "node_modules" / "dep").mkdir(parents=True)

    (root / "pkg" / "__init__.py").write_text("")
    (root / "pkg" / "core.py").write_text(
        "import os\n"
        "from pkg import util\n"
        "\n"
        "def run():\n"
        "    return util.helper()\n"
        "\n"
        "def _private():\n"
        "    pass\n"
        "\n"
        "class Engine:\n"
        "    pass\n"
    )
    (root / "pkg" / "util.py").write_text("def helper():\n    return 1\n")
    (root / "web" / "app.js").write_text(
        "const lodash = require('lodash');\n"
        "\n"
        "export function start() {}\n"
        "function local() {}\n"
    )
    (root / "node_modules" / "dep" / "index.js").write_text("function dep() {}\n")
    (root / "README.md").write_text("# Sample\n")
    return root


# ---------------------------------------------------------------------------
# Git fixtures
# ---------------------------------------------------------------------------


def run_git(repo: Path, *args: str) -> str:
    """Run git in ``repo`` and return stdout."""
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit_all(repo: Path, message: str = "change") -> str:
    """Stage everything, commit, and return the new HEAD."""
    run_git(repo, "add", "-A")
    run_git(repo, "commit", "-q", "--allow-empty", "-m", message)
    return run_git(repo, "rev-parse", "HEAD")


@pytest.fixture()
def git_project(sample_project) -> Path:
    """The sample project as a git repository with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    run_git(sample_project, "init", "-q", "-b", "main")
    run_git(sample_project, "config", "user.email", "tests@example.com")
    run_git(sample_project, "config", "user.name", "Tests")
    run_git(sample_project, "config", "commit.gpgsign", "false")
    (sample_project / ".gitignore").write_text("node_modules/\n.claude/\n")
    commit_all(sample_project, "initial")
    return sample_project


@pytest.fixture()
def commit():
    """Callable that commits every change in a repository and returns HEAD."""
    return commit_all


@pytest.fixture()
def git_cmd():
    """Callable that runs a git command in a repository."""
    return run_git
