"""
Heuristics for classifying a unified diff into a change category.

The classifier scans the diff line by line, collects a handful of
statistics (touched extensions, new and modified files, added and
removed lines) and derives one of six categories from them. It is
intentionally simple and deterministic so that it can be unit tested
without a language model, and so that the generator can compare the
model's answer against a stable suggested commit type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence, Tuple


# Files whose creation signals a freshly initialised project.
DEPENDENCY_MANIFESTS: Tuple[str, ...] = (
    "Cargo.toml",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "requirements.txt",
    "Pipfile",
    "package.json",
    "go.mod",
    "Gemfile",
    "pom.xml",
    "build.gradle",
    "composer.json",
)

DOCUMENTATION_EXTENSIONS = frozenset({"md", "txt"})
TEST_MARKERS: Tuple[str, ...] = ("test", "spec")

LARGE_CHANGE_LINES = 100
LARGE_CHANGE_FILES = 5


class ChangeCategory(Enum):
    """Mutually exclusive labels derived from diff statistics."""

    INITIAL_SETUP = "initial-setup"
    DOCUMENTATION = "documentation"
    TEST_ADDITION = "test-addition"
    LARGE_FEATURE = "large-feature"
    MAJOR_REFACTOR = "major-refactor"
    STANDARD = "standard"

    @property
    def label(self) -> str:
        """Human-readable name used in prompts."""
        return _LABELS[self]

    @property
    def suggested_type(self) -> str:
        """Conventional Commit type expected for this category."""
        return _SUGGESTED_TYPES[self]


_LABELS = {
    ChangeCategory.INITIAL_SETUP: "initial project setup",
    ChangeCategory.DOCUMENTATION: "documentation change",
    ChangeCategory.TEST_ADDITION: "test addition",
    ChangeCategory.LARGE_FEATURE: "large feature implementation",
    ChangeCategory.MAJOR_REFACTOR: "major refactoring",
    ChangeCategory.STANDARD: "standard change",
}

_SUGGESTED_TYPES = {
    ChangeCategory.INITIAL_SETUP: "feat",
    ChangeCategory.DOCUMENTATION: "docs",
    ChangeCategory.TEST_ADDITION: "test",
    ChangeCategory.LARGE_FEATURE: "feat",
    ChangeCategory.MAJOR_REFACTOR: "refactor",
    ChangeCategory.STANDARD: "feat",
}


def categorize(
    file_types: Iterable[str],
    new_files: Iterable[str],
    additions: int,
    deletions: int,
) -> ChangeCategory:
    """Pick the change category from diff statistics.

    Rules are evaluated in a fixed priority order and the first match
    wins:

    1. initial setup: a dependency manifest is among more than five new files
    2. documentation: the only extension touched is ``md`` or ``txt``
    3. test addition: a new file path mentions ``test`` or ``spec``
    4. large feature: more than 100 added lines or more than five new files
    5. major refactor: more than twice as many deletions as additions
    6. standard: anything else
    """
    file_types = list(file_types)
    new_files = list(new_files)

    has_manifest = any(
        manifest in path for path in new_files for manifest in DEPENDENCY_MANIFESTS
    )
    if has_manifest and len(new_files) > LARGE_CHANGE_FILES:
        return ChangeCategory.INITIAL_SETUP
    if len(set(file_types)) == 1 and file_types[0] in DOCUMENTATION_EXTENSIONS:
        return ChangeCategory.DOCUMENTATION
    if any(marker in path for path in new_files for marker in TEST_MARKERS):
        return ChangeCategory.TEST_ADDITION
    if additions > LARGE_CHANGE_LINES or len(new_files) > LARGE_CHANGE_FILES:
        return ChangeCategory.LARGE_FEATURE
    if deletions > additions * 2:
        return ChangeCategory.MAJOR_REFACTOR
    return ChangeCategory.STANDARD


@dataclass(frozen=True)
class DiffClassification:
    """Statistics and derived category of a single diff.

    Attributes
    ----------
    category : ChangeCategory
        Category computed by :func:`categorize` from the other fields.
    file_types : Tuple[str, ...]
        Distinct file extensions touched, in first-seen order.
    new_files : Tuple[str, ...]
        Paths reported as newly added.
    modified_files : Tuple[str, ...]
        Paths reported as modified.
    additions : int
        Number of added content lines.
    deletions : int
        Number of removed content lines.
    """

    category: ChangeCategory
    file_types: Tuple[str, ...] = ()
    new_files: Tuple[str, ...] = ()
    modified_files: Tuple[str, ...] = ()
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_stats(
        cls,
        file_types: Sequence[str],
        new_files: Sequence[str],
        modified_files: Sequence[str],
        additions: int,
        deletions: int,
    ) -> "DiffClassification":
        category = categorize(file_types, new_files, additions, deletions)
        return cls(
            category=category,
            file_types=tuple(file_types),
            new_files=tuple(new_files),
            modified_files=tuple(modified_files),
            additions=additions,
            deletions=deletions,
        )

    @property
    def suggested_type(self) -> str:
        return self.category.suggested_type

    def summary(self) -> str:
        """One-line description of the change for the user prompt."""
        return (
            f"{self.category.label} (suggested type: {self.suggested_type}) "
            f"with {len(self.new_files)} new files and {len(self.modified_files)} "
            f"modified files. Changes include {self.additions} additions and "
            f"{self.deletions} deletions across file types: {', '.join(self.file_types)}"
        )


def _file_from_header(line: str) -> str:
    path = line.rsplit(" ", 1)[-1]
    if path.startswith("b/"):
        path = path[2:]
    return path


def _extension(path: str) -> str:
    # Files without a dot (Makefile, LICENSE) count under their own name.
    basename = path.rsplit("/", 1)[-1]
    return basename.rsplit(".", 1)[-1]


def classify_diff(diff_text: str) -> DiffClassification:
    """Classify a unified diff.

    Parameters
    ----------
    diff_text : str
        Unified diff as produced by ``git diff``. May be empty.

    Returns
    -------
    DiffClassification
        Statistics and category of the diff. An empty diff yields zero
        counters and :attr:`ChangeCategory.STANDARD`.

    Notes
    -----
    This is a per-line state machine, not a structural diff parser. It
    never raises; unrecognised lines are ignored.
    """
    file_types: List[str] = []
    new_files: List[str] = []
    modified_files: List[str] = []
    additions = 0
    deletions = 0

    current_file = ""
    for line in diff_text.splitlines():
        if line.startswith("diff --git"):
            current_file = _file_from_header(line)
            ext = _extension(current_file)
            if ext not in file_types:
                file_types.append(ext)
        elif line.startswith("new file"):
            new_files.append(current_file)
        elif line.startswith("modified"):
            modified_files.append(current_file)
        elif line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1

    return DiffClassification.from_stats(
        file_types=file_types,
        new_files=new_files,
        modified_files=modified_files,
        additions=additions,
        deletions=deletions,
    )
