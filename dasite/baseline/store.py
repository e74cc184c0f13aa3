"""Baseline store — owns the on-disk layout of current, baseline and diff images.

Layout::

    <output>/<identity>/current.png
    <output>/<identity>/baseline.png
    <output>/<identity>/diff.png
    <output>/versions/<tag>/manifest.json
    <output>/versions/<tag>/<identity>/baseline.png
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import time
from pathlib import Path
from typing import Iterable, Optional

from dasite.comparator.image_comparator import compare_images
from dasite.crawler.screenshot import CURRENT_FILENAME
from dasite.errors import BaselineVersionError
from dasite.models.baseline import BaselineVersion
from dasite.models.comparison import CompareSummary, ComparisonResult
from dasite.models.config import CompareOptions

logger = logging.getLogger(__name__)

BASELINE_FILENAME = "baseline.png"
DIFF_FILENAME = "diff.png"
MANIFEST_FILENAME = "manifest.json"
RESERVED_DIRS = ("reports", "versions")


def _hash_file(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


class BaselineStore:
    """Manages baseline images for every captured identity in an output directory."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.versions_dir = self.output_dir / "versions"

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def identity_dir(self, identity: str) -> Path:
        return self.output_dir / identity

    def current_path(self, identity: str) -> Path:
        return self.identity_dir(identity) / CURRENT_FILENAME

    def baseline_path(self, identity: str) -> Path:
        return self.identity_dir(identity) / BASELINE_FILENAME

    def diff_path(self, identity: str) -> Path:
        return self.identity_dir(identity) / DIFF_FILENAME

    def _identity_dirs(self) -> list[Path]:
        if not self.output_dir.exists():
            raise FileNotFoundError(f"Output directory not found: {self.output_dir}")
        return sorted(
            p for p in self.output_dir.iterdir()
            if p.is_dir() and p.name not in RESERVED_DIRS
        )

    def identities(self) -> list[str]:
        """Identities that have a current capture."""
        return [p.name for p in self._identity_dirs() if (p / CURRENT_FILENAME).exists()]

    def baseline_identities(self) -> list[str]:
        """Identities that have an accepted baseline."""
        return [p.name for p in self._identity_dirs() if (p / BASELINE_FILENAME).exists()]

    def has_baseline(self, identity: str) -> bool:
        return self.baseline_path(identity).exists()

    # ------------------------------------------------------------------
    # Accepting
    # ------------------------------------------------------------------

    def accept(self, version: Optional[str] = None) -> int:
        """Promote every current capture to baseline. Returns the number accepted."""
        if not self.output_dir.exists():
            logger.info("No snapshots found to accept as baselines.")
            return 0

        accepted = 0
        for identity in self.identities():
            shutil.copyfile(self.current_path(identity), self.baseline_path(identity))
            accepted += 1
            logger.debug("Accepted baseline for %s", identity)

        if accepted:
            logger.info("Accepted %d snapshots as new baselines.", accepted)
        else:
            logger.info("No snapshots found to accept as baselines.")

        if version and accepted:
            self.save_version(version)
        return accepted

    def bootstrap(self, targets: Optional[Iterable[str]] = None) -> list[str]:
        """Create baselines for captures that have none yet. Returns the identities created."""
        wanted = set(targets) if targets is not None else None
        created = []
        for identity in self.identities():
            if wanted is not None and identity not in wanted:
                continue
            if self.has_baseline(identity):
                continue
            shutil.copyfile(self.current_path(identity), self.baseline_path(identity))
            created.append(identity)
        if created:
            logger.info("Created %d new baselines", len(created))
        return created

    # ------------------------------------------------------------------
    # Comparing
    # ------------------------------------------------------------------

    def compare(self, identity: str, options: Optional[CompareOptions] = None) -> ComparisonResult:
        """Compare one identity's current capture against its baseline."""
        baseline = self.baseline_path(identity)
        current = self.current_path(identity)
        diff = self.diff_path(identity)

        comparison = compare_images(baseline, current, diff, options)
        return ComparisonResult(
            target=identity,
            baseline_path=str(baseline),
            current_path=str(current),
            diff_image_path=str(diff),
            diff_pixels=comparison.diff_pixels,
            total_pixels=comparison.total_pixels,
            diff_percentage=comparison.diff_percentage,
            changed=comparison.diff_pixels > 0,
            changed_regions=comparison.changed_regions,
            width=comparison.width,
            height=comparison.height,
        )

    def compare_all(
        self,
        options: Optional[CompareOptions] = None,
        targets: Optional[Iterable[str]] = None,
    ) -> CompareSummary:
        """Compare every capture against its baseline.

        Captures without a baseline get one created instead of being compared.
        Errors on a single identity are logged and recorded; the rest proceed.
        """
        wanted = set(targets) if targets is not None else None
        identities = [i for i in self.identities() if wanted is None or i in wanted]
        summary = CompareSummary()

        if not identities:
            summary.message = "No screenshots found to compare"
            return summary

        summary.baselines_created = self.bootstrap(identities)
        for identity in identities:
            if identity in summary.baselines_created:
                continue
            try:
                result = self.compare(identity, options)
                summary.results.append(result)
                if result.changed:
                    logger.info("%s changed: %.2f%%", identity, result.diff_percentage)
            except Exception as e:
                logger.error("Error comparing %s: %s", identity, e)
                summary.errors[identity] = str(e)

        summary.message = self._summary_message(summary)
        return summary

    def _summary_message(self, summary: CompareSummary) -> str:
        parts = []
        if summary.baselines_created:
            parts.append(
                f"{len(summary.baselines_created)} baselines created, re-run to compare"
            )
        if summary.results:
            parts.append(f"Compared {len(summary.results)} screenshots")
            changed = len(summary.changed)
            parts.append(f"Found {changed} differences" if changed else "No changes detected")
        if summary.errors:
            parts.append(f"{len(summary.errors)} comparisons failed")
        return "\n".join(parts) or "No previous screenshots found for comparison"

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def prune(self, older_than_days: float) -> int:
        """Delete baselines whose modification time is older than the cutoff.

        This cannot be undone; export first if the images should be kept.
        """
        cutoff = time.time() - older_than_days * 86400
        removed = 0
        for identity in self.baseline_identities():
            path = self.baseline_path(identity)
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
                logger.debug("Pruned baseline %s", path)
        logger.info("Pruned %d baselines older than %s days", removed, older_than_days)
        return removed

    def export_to(self, dest_dir: Path) -> int:
        """Copy every baseline to ``dest_dir/<identity>/baseline.png``."""
        dest_dir = Path(dest_dir)
        exported = 0
        for identity in self.baseline_identities():
            target = dest_dir / identity / BASELINE_FILENAME
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.baseline_path(identity), target)
            exported += 1
        logger.info("Exported %d baselines to %s", exported, dest_dir)
        return exported

    def import_from(self, source_dir: Path) -> int:
        """Copy baselines from a tree written by :meth:`export_to`."""
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Baseline source not found: {source_dir}")
        imported = 0
        for src in sorted(source_dir.glob(f"*/{BASELINE_FILENAME}")):
            identity = src.parent.name
            if identity in RESERVED_DIRS:
                continue
            dest = self.baseline_path(identity)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)
            imported += 1
        logger.info("Imported %d baselines from %s", imported, source_dir)
        return imported

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def save_version(self, tag: str) -> BaselineVersion:
        """Snapshot the current baselines under ``versions/<tag>``."""
        version_dir = self.versions_dir / tag
        if version_dir.exists():
            shutil.rmtree(version_dir)
        self.export_to(version_dir)

        identities = self.baseline_identities()
        version = BaselineVersion(
            tag=tag,
            created_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            identities=identities,
            hashes={i: _hash_file(self.baseline_path(i)) for i in identities},
        )
        with open(version_dir / MANIFEST_FILENAME, "w") as f:
            json.dump(version.model_dump(), f, indent=2)
        logger.info("Saved baseline version %s (%d baselines)", tag, len(identities))
        return version

    def list_versions(self) -> list[BaselineVersion]:
        """All saved versions, oldest first."""
        if not self.versions_dir.exists():
            return []
        versions = []
        for version_dir in self.versions_dir.iterdir():
            if not version_dir.is_dir():
                continue
            manifest = version_dir / MANIFEST_FILENAME
            try:
                with open(manifest) as f:
                    versions.append(BaselineVersion(**json.load(f)))
            except (OSError, ValueError) as e:
                logger.warning("Skipping version %s without a readable manifest: %s", version_dir.name, e)
        return sorted(versions, key=lambda v: (v.created_at, v.tag))

    def restore_version(self, tag: str) -> int:
        """Replace baselines with those saved under ``tag``. Returns the number restored.

        Baselines for identities the version does not contain are removed, so
        the store matches the version exactly afterwards.
        """
        version_dir = self.versions_dir / tag
        if not version_dir.is_dir():
            raise BaselineVersionError(f"Baseline version not found: {tag}")
        saved = {p.parent.name for p in version_dir.glob(f"*/{BASELINE_FILENAME}")}
        for identity in self.baseline_identities():
            if identity not in saved:
                self.baseline_path(identity).unlink()
                logger.debug("Removed baseline %s not present in version %s", identity, tag)
        restored = self.import_from(version_dir)
        logger.info("Restored baselines from version %s", tag)
        return restored
