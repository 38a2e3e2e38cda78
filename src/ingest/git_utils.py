"""Git utilities for the clone strategy.

Thin wrappers around GitPython: cloning with a timeout, branch resolution,
name-status listing between two trees and blob reads.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

import git
from git.exc import BadName, BadObject

from common.constants import ORIGIN_REF_PREFIX
from common.logger import get_logger

from .models import ChangeType, RepositoryCredentials

logger = get_logger(__name__)

# Never let git block on an interactive credential prompt
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}

# git checks the first 8000 bytes for NUL to decide a blob is binary
BINARY_SNIFF_BYTES = 8000


@dataclass
class NameStatus:
    """One entry of ``git diff --name-status``."""

    status: ChangeType
    path: str
    previous_path: str | None = None


def authenticated_url(repository_url: str, credentials: RepositoryCredentials | None) -> str:
    """Return the clone URL with HTTP credentials embedded.

    A token is sent as the password (username defaults to ``oauth2``; a token in
    ``user:secret`` form carries its own username). Username/password pairs are
    used as given. SSH keys are not wired into the transport, so the URL is
    returned unchanged and the clone is attempted anonymously.

    Args:
        repository_url: Repository URL as configured
        credentials: Connection credentials, may be None

    Returns:
        URL to hand to ``git clone``; never log it unmasked
    """
    if credentials is None:
        return repository_url

    parts = urlsplit(repository_url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return repository_url

    if credentials.has_token():
        token = credentials.token.strip()
        if ":" in token:
            user, secret = token.split(":", 1)
        else:
            user, secret = credentials.username or "oauth2", token
    elif credentials.has_username_password():
        user, secret = credentials.username, credentials.password
    else:
        if credentials.has_ssh_key():
            logger.warning("SSH key authentication is not supported; attempting anonymous clone")
        return repository_url

    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{quote(user, safe='')}:{quote(secret, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def clone_repository(clone_url: str, target: Path, timeout_seconds: int) -> git.Repo:
    """Clone all branches of a repository into ``target``.

    Args:
        clone_url: URL (possibly carrying credentials) or local path
        target: Empty directory to clone into
        timeout_seconds: The git process is killed after this long

    Returns:
        Open repository handle; the caller must close it

    Raises:
        git.exc.GitCommandError: If the clone fails or times out
    """
    git.Git().clone(
        "--no-checkout",
        clone_url,
        str(target),
        kill_after_timeout=timeout_seconds,
        env=GIT_ENV,
    )
    return git.Repo(target)


def resolve_branch(repo: git.Repo, branch_name: str | None) -> str | None:
    """Resolve the revision to walk for a branch name.

    Tries the name as given, then ``refs/remotes/origin/<name>``. Returns None
    (walk the repository default) when no branch is requested or neither
    resolves.
    """
    if not branch_name or not branch_name.strip():
        return None

    branch_name = branch_name.strip()
    for candidate in (branch_name, f"{ORIGIN_REF_PREFIX}{branch_name}"):
        try:
            return repo.commit(candidate).hexsha
        except (BadName, BadObject, ValueError):
            continue

    logger.warning(f"Could not find branch {branch_name}, using default branch")
    return None


def diff_name_status(repo: git.Repo, base: str, sha: str) -> list[NameStatus]:
    """List files changed between two trees, with rename detection.

    Uses: git diff --name-status -M -z base sha

    Args:
        repo: Repository handle
        base: Parent commit or the empty tree
        sha: Commit to compare

    Returns:
        Entries in git's output order
    """
    output = repo.git.diff("--name-status", "-M", "-z", base, sha)
    tokens = [t for t in output.split("\0")]
    # -z output ends with a NUL
    if tokens and tokens[-1] == "":
        tokens.pop()

    entries: list[NameStatus] = []
    index = 0
    while index < len(tokens):
        status = tokens[index]
        index += 1
        code = status[:1]

        if code in ("R", "C"):
            old_path, new_path = tokens[index], tokens[index + 1]
            index += 2
            if code == "R":
                entries.append(NameStatus(ChangeType.RENAMED, new_path, previous_path=old_path))
            else:
                entries.append(NameStatus(ChangeType.ADDED, new_path))
            continue

        path = tokens[index]
        index += 1
        if code == "A":
            entries.append(NameStatus(ChangeType.ADDED, path))
        elif code == "D":
            entries.append(NameStatus(ChangeType.DELETED, path, previous_path=path))
        else:
            if code not in ("M", "T"):
                logger.warning(f"Unknown git status '{status}' for file {path}, treating as Modified")
            entries.append(NameStatus(ChangeType.MODIFIED, path, previous_path=path))

    return entries


def read_blob(commit: git.Commit | None, path: str | None) -> bytes | None:
    """Read a file's bytes at a commit, or None if it does not exist there."""
    if commit is None or path is None:
        return None
    try:
        blob = commit.tree / path
    except KeyError:
        return None
    # Submodule entries are commits, not blobs
    if blob.type != "blob":
        return None
    return blob.data_stream.read()


def is_binary_content(data: bytes | None) -> bool:
    return data is not None and b"\0" in data[:BINARY_SNIFF_BYTES]


def split_lines(data: bytes | None) -> list[str]:
    """Split blob content into lines the way git counts them.

    Only ``\\n`` ends a line; form feeds and other Unicode separators stay
    inside their line so numbers match ``git diff``.
    """
    if not data:
        return []
    lines = data.split(b"\n")
    if lines[-1] == b"":
        lines.pop()
    return [line.decode("utf-8", errors="replace") for line in lines]
