"""Screenshot artifact layout — where each page's images live on disk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from visual_compare.url_utils import artifact_key


class Role(str, Enum):
    BASELINE = "baseline"
    CANDIDATE = "candidate"
    DIFF = "diff"


@dataclass(frozen=True)
class PageArtifacts:
    baseline: Path
    candidate: Path
    diff: Path


class ArtifactLayout:
    """Resolves ``{root}/{device}/{role}/{artifact_key}.png`` paths.

    Baseline and candidate images are stored under the environment names
    (``staging`` and ``prod`` by default); diffs always go under ``diff``.
    """

    def __init__(self, root: Path, baseline_dir: str = "staging", candidate_dir: str = "prod"):
        self.root = Path(root)
        self._role_dirs = {
            Role.BASELINE: baseline_dir,
            Role.CANDIDATE: candidate_dir,
            Role.DIFF: "diff",
        }

    def role_dir(self, device: str, role: Role) -> Path:
        return self.root / device / self._role_dirs[role]

    def path(self, device: str, role: Role, page_path: str) -> Path:
        return self.role_dir(device, role) / f"{artifact_key(page_path)}.png"

    def for_page(self, device: str, page_path: str) -> PageArtifacts:
        return PageArtifacts(
            baseline=self.path(device, Role.BASELINE, page_path),
            candidate=self.path(device, Role.CANDIDATE, page_path),
            diff=self.path(device, Role.DIFF, page_path),
        )

    def ensure_dirs(self, device: str) -> None:
        for role in Role:
            self.role_dir(device, role).mkdir(parents=True, exist_ok=True)
