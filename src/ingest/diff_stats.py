"""Line-level diff statistics.

One contract, two input shapes:

- a structured edit list computed locally (clone path), see ``compute_edits``
  and ``stats_from_edits``
- unified-diff text returned by a platform API (REST path), see
  ``stats_from_unified_diff``

Both produce ``DiffStats``: added, removed and changed line counts plus the
1-based new-file line numbers the change touched.
"""

import difflib
import re
from dataclasses import dataclass, field
from enum import Enum

from common.constants import BINARY_EXTENSIONS
from common.logger import get_logger

from .models import ChangeType

logger = get_logger(__name__)

HUNK_HEADER = re.compile(r"^@@\s+-\d+(?:,\d+)?\s+\+(\d+)(?:,\d+)?\s+@@")

DIFF_FILE_HEADER = re.compile(r"^diff --git a/(.+?) b/(.+)$")


class EditKind(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class Edit:
    """A span of changed lines; 0-based, half-open ranges in the old (a) and new (b) file."""

    kind: EditKind
    a_start: int
    a_end: int
    b_start: int
    b_end: int


@dataclass
class DiffStats:
    """Accumulated statistics for one file (or one whole commit)."""

    added_lines: int = 0
    removed_lines: int = 0
    changed_lines: int = 0
    line_numbers: set[int] = field(default_factory=set)

    @property
    def changed_line_numbers(self) -> tuple[int, ...]:
        return tuple(sorted(self.line_numbers))

    def has_changes(self) -> bool:
        return bool(self.added_lines or self.removed_lines or self.line_numbers)

    def _touch(self, line_number: int) -> None:
        # Deleted files report a new-file start of 0; there is no line to touch
        if line_number >= 1:
            self.line_numbers.add(line_number)


@dataclass(frozen=True)
class FilePatch:
    """One file's section of a multi-file unified diff."""

    old_path: str | None
    new_path: str | None
    change_type: ChangeType
    patch: str

    @property
    def path(self) -> str:
        return self.new_path or self.old_path or ""


def is_binary_path(file_name: str | None) -> bool:
    """Best-effort binary detection from the file extension."""
    if not file_name:
        return False
    return file_name.lower().endswith(BINARY_EXTENSIONS)


def compute_edits(old_lines: list[str], new_lines: list[str]) -> list[Edit]:
    """Compute the edit list that turns ``old_lines`` into ``new_lines``."""
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    return [
        Edit(EditKind(tag), a_start, a_end, b_start, b_end)
        for tag, a_start, a_end, b_start, b_end in matcher.get_opcodes()
        if tag != "equal"
    ]


def stats_from_edits(edits: list[Edit]) -> DiffStats:
    """Summarize an edit list.

    INSERT adds only to added lines, DELETE only to removed lines, REPLACE
    adds both spans and contributes ``min(old_span, new_span)`` to changed
    lines. Deletions touch the new-file line at which they occurred.
    """
    stats = DiffStats()
    for edit in edits:
        old_span = edit.a_end - edit.a_start
        new_span = edit.b_end - edit.b_start

        if edit.kind == EditKind.INSERT:
            stats.added_lines += new_span
            for index in range(edit.b_start, edit.b_end):
                stats._touch(index + 1)
        elif edit.kind == EditKind.DELETE:
            stats.removed_lines += old_span
            stats._touch(edit.b_start + 1)
        elif edit.kind == EditKind.REPLACE:
            stats.added_lines += new_span
            stats.removed_lines += old_span
            stats.changed_lines += min(old_span, new_span)
            for index in range(edit.b_start, edit.b_end):
                stats._touch(index + 1)
    return stats


def stats_from_unified_diff(patch: str | None) -> DiffStats:
    """Summarize unified-diff text for a single file.

    The hunk header seeds a running new-file line counter. Added lines count
    and advance it, removed lines count without advancing, context lines
    advance uncounted. A run of removals directly followed by additions is a
    replacement and contributes ``min(removed, added)`` to changed lines.
    """
    stats = DiffStats()
    if not patch:
        return stats

    current_line = 0
    in_hunk = False
    run_removed = 0
    run_added = 0

    def close_run() -> None:
        nonlocal run_removed, run_added
        stats.changed_lines += min(run_removed, run_added)
        run_removed = run_added = 0

    for line in _diff_lines(patch):
        header = HUNK_HEADER.match(line)
        if header:
            close_run()
            current_line = int(header.group(1))
            in_hunk = True
            continue

        if line.startswith("diff "):
            close_run()
            in_hunk = False
            continue

        if not in_hunk or line.startswith("\\"):
            continue

        if line.startswith("+"):
            if line.startswith("+++"):
                continue
            stats.added_lines += 1
            stats._touch(current_line)
            current_line += 1
            run_added += 1
        elif line.startswith("-"):
            if line.startswith("---"):
                continue
            if run_added:
                close_run()
            stats.removed_lines += 1
            stats._touch(current_line)
            run_removed += 1
        else:
            close_run()
            current_line += 1

    close_run()
    return stats


def split_unified_diff(diff_text: str | None) -> list[FilePatch]:
    """Split a multi-file ``git diff`` document into per-file patches."""
    if not diff_text:
        return []

    patches: list[FilePatch] = []
    section: list[str] = []

    for line in _diff_lines(diff_text):
        if line.startswith("diff --git ") and section:
            patches.append(_file_patch(section))
            section = []
        section.append(line)

    if section and section[0].startswith("diff --git "):
        patches.append(_file_patch(section))
    elif section:
        logger.debug("Ignoring diff text without a 'diff --git' header")
    return patches


def _file_patch(lines: list[str]) -> FilePatch:
    header = DIFF_FILE_HEADER.match(lines[0])
    old_path = header.group(1) if header else None
    new_path = header.group(2) if header else None
    change_type = ChangeType.MODIFIED

    for line in lines[1:]:
        if line.startswith("@@"):
            break
        if line.startswith("new file mode"):
            change_type = ChangeType.ADDED
        elif line.startswith("deleted file mode"):
            change_type = ChangeType.DELETED
        elif line.startswith("rename from "):
            change_type = ChangeType.RENAMED
            old_path = line[len("rename from ") :]
        elif line.startswith("rename to "):
            new_path = line[len("rename to ") :]
        elif line.startswith("--- "):
            old_path = _strip_prefix(line[4:], "a/") or old_path
        elif line.startswith("+++ "):
            new_path = _strip_prefix(line[4:], "b/") or new_path

    if change_type == ChangeType.ADDED:
        old_path = None
    elif change_type == ChangeType.DELETED:
        new_path = None

    return FilePatch(old_path, new_path, change_type, "\n".join(lines))


def _strip_prefix(path: str, prefix: str) -> str | None:
    path = path.strip()
    if path == "/dev/null":
        return None
    return path[len(prefix) :] if path.startswith(prefix) else path


def _diff_lines(text: str) -> list[str]:
    # Only "\n" separates diff lines; "\f" and friends are line content
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
