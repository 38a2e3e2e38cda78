"""Shared constants for the scm-ingest engine.

For environment-based configuration (timeouts, thresholds, etc.), use the env module:
    from common.env import env
    timeout = env.clone_timeout_minutes()
"""

# Maximum number of commits visited by one history walk
COMMIT_WALK_LIMIT = 1000

# Well-known id of git's empty tree; initial commits are diffed against it
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

TEMP_DIR_PREFIX = "git-scanner-"

ORIGIN_REF_PREFIX = "refs/remotes/origin/"

# Extensions treated as binary content; matched case-insensitively on the file name
BINARY_EXTENSIONS: tuple[str, ...] = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".bmp",
    ".ico",
    ".svg",
    ".pdf",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".class",
    ".jar",
)

# Review states that count as a reviewer picking up a pull request
REVIEW_ACTIVITY_STATES: set[str] = {
    "APPROVED",
    "COMMENTED",
    "CHANGES_REQUESTED",
    "DISMISSED",
}
