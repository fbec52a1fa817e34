"""
Document store for epic PRDs, changelogs and the learnings log.

Layout under the configured docs directory:

    prds/<NNN>-<slug>.md        one PRD per epic
    changelogs/<NNN>-<slug>.md  one changelog per documented epic
    learnings.md                shared, append-only bullet list
"""

import logging
from pathlib import Path

from epicflow.documents.changelog import ChangelogDocument
from epicflow.documents.prd import PRDDocument, parse_prd, set_status_line
from epicflow.lib.constants import EPIC_FILE_RE, EPIC_NUMBER_WIDTH
from epicflow.lib.errors import AlreadyExists, MissingPRD
from epicflow.lib.locking import locked_open

logger = logging.getLogger(__name__)

LEARNINGS_FILE = "learnings.md"


def epic_filename(number: int, slug: str) -> str:
    return f"{number:0{EPIC_NUMBER_WIDTH}d}-{slug}.md"


class DocumentStore:
    """Reads and writes epic documents under docs_dir."""

    def __init__(self, docs_dir: Path, lock_timeout: float = 30):
        self.docs_dir = docs_dir
        self.prds_dir = docs_dir / "prds"
        self.changelogs_dir = docs_dir / "changelogs"
        self.learnings_path = docs_dir / LEARNINGS_FILE
        self.lock_timeout = lock_timeout

    def _prd_files(self) -> list[tuple[int, str, Path]]:
        """(number, slug, path) for every PRD file whose name parses."""
        if not self.prds_dir.exists():
            return []

        found = []
        for path in sorted(self.prds_dir.glob("*.md")):
            match = EPIC_FILE_RE.match(path.name)
            if not match:
                logger.warning(f"[DOCS] Skipping PRD with unparsable name: {path.name}")
                continue
            found.append((int(match.group(1)), match.group(2), path))
        return found

    def prd_path(self, slug: str) -> Path | None:
        """Path of the PRD for slug, or None if there isn't one."""
        for _, file_slug, path in self._prd_files():
            if file_slug == slug:
                return path
        return None

    def exists(self, slug: str) -> bool:
        return self.prd_path(slug) is not None

    def read_prd(self, slug: str) -> PRDDocument:
        """Read and parse the PRD for slug.

        Raises:
            MissingPRD: if no PRD file exists for slug
        """
        for number, file_slug, path in self._prd_files():
            if file_slug == slug:
                return parse_prd(path.read_text(), slug, number=number)
        raise MissingPRD(slug)

    def write_prd(self, document: PRDDocument) -> Path:
        """Create or overwrite the PRD for document.slug."""
        path = self.prd_path(document.slug) or self.prds_dir / epic_filename(document.number, document.slug)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document.render())
        logger.info(f"[DOCS] Wrote PRD {path.name}")
        return path

    def update_status(self, slug: str, status: str) -> Path:
        """Rewrite only the Status line of an existing PRD.

        Raises:
            MissingPRD: if no PRD file exists for slug
        """
        path = self.prd_path(slug)
        if path is None:
            raise MissingPRD(slug)
        path.write_text(set_status_line(path.read_text(), status))
        logger.info(f"[DOCS] {slug}: status -> {status}")
        return path

    def next_epic_number(self) -> int:
        """One more than the highest PRD number on disk, or 1 when there are none.

        Computed from the files each time; there is no stored counter.
        """
        numbers = [number for number, _, _ in self._prd_files()]
        if not numbers:
            return 1
        return max(numbers) + 1

    def list_epics(self) -> list[PRDDocument]:
        """All readable PRDs, ordered by epic number."""
        epics = []
        for number, slug, path in self._prd_files():
            try:
                epics.append(parse_prd(path.read_text(), slug, number=number))
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.warning(f"[DOCS] Skipping unreadable PRD {path.name}: {e}")
        return sorted(epics, key=lambda e: e.number)

    def changelog_path(self, slug: str) -> Path:
        """Where the changelog for slug lives (whether or not it exists yet).

        Raises:
            MissingPRD: if no PRD file exists for slug
        """
        prd = self.prd_path(slug)
        if prd is None:
            raise MissingPRD(slug)
        return self.changelogs_dir / prd.name

    def changelog_exists(self, slug: str) -> bool:
        return self.exists(slug) and self.changelog_path(slug).exists()

    def read_changelog_text(self, slug: str) -> str | None:
        if not self.changelog_exists(slug):
            return None
        return self.changelog_path(slug).read_text()

    def write_changelog(self, slug: str, changelog: ChangelogDocument, force: bool = False) -> Path:
        """Write the changelog for slug.

        Raises:
            MissingPRD: if no PRD file exists for slug
            AlreadyExists: if a changelog exists and force is False
        """
        path = self.changelog_path(slug)
        if path.exists() and not force:
            raise AlreadyExists(f"{path} (use --force to overwrite)")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(changelog.render())
        logger.info(f"[DOCS] Wrote changelog {path.name}")
        return path

    def append_learnings(self, entries: list[str]) -> Path:
        """Append entries to the learnings log as bullet lines.

        Existing content is never rewritten; when it lacks a trailing
        newline one is added before the new lines. Blank entries are dropped.

        Raises:
            LockTimeout: if another writer holds the log for too long
        """
        lines = []
        for entry in entries:
            text = " ".join(entry.split())
            if text.startswith("- "):
                text = text[2:].lstrip()
            if text:
                lines.append(f"- {text}\n")

        if not lines:
            return self.learnings_path

        with locked_open(self.learnings_path, "ab+", timeout=self.lock_timeout) as f:
            f.seek(0, 2)
            if f.tell() > 0:
                f.seek(-1, 2)
                if f.read(1) != b"\n":
                    f.write(b"\n")
            f.write("".join(lines).encode("utf-8"))
        logger.info(f"[DOCS] Appended {len(lines)} learning(s)")
        return self.learnings_path

    def read_learnings(self) -> list[str]:
        """Learnings entries in order, without bullet prefixes."""
        if not self.learnings_path.exists():
            return []
        entries = []
        for line in self.learnings_path.read_text().splitlines():
            if line.startswith("- "):
                entries.append(line[2:])
        return entries
