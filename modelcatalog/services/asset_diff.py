"""
Asset reference diffing for record edits.

Pure functions: given the stored record and the fields an edit supplies,
work out which object store keys the edit supersedes.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from modelcatalog.schemas.model_record import ModelFileRef, StoredFileRef


@dataclass(frozen=True)
class AssetDiff:
    """Keys an edit supersedes, grouped by the field they come from."""

    image: str | None = None
    video: str | None = None
    files: tuple[str, ...] = ()

    @property
    def superseded_keys(self) -> list[str]:
        """Image, video, then file keys, without duplicates."""
        keys = [k for k in (self.image, self.video) if k]
        keys.extend(self.files)
        return list(dict.fromkeys(keys))

    def __bool__(self) -> bool:
        return bool(self.superseded_keys)


def as_file_refs(files: Sequence[Mapping[str, Any] | ModelFileRef] | None) -> list[StoredFileRef]:
    """Normalise stored or proposed file entries to lenient typed references."""
    return [
        StoredFileRef.model_validate(
            f.model_dump(exclude_none=True) if isinstance(f, ModelFileRef) else dict(f)
        )
        for f in files or []
    ]


def file_lists_equal(current: Sequence[StoredFileRef], proposed: Sequence[StoredFileRef]) -> bool:
    """
    Structural, order-sensitive equality.

    Same membership in a different order is NOT equal.
    """
    if len(current) != len(proposed):
        return False
    return all(a.normalized() == b.normalized() for a, b in zip(current, proposed))


def _superseded_key(current: str | None, update_fields: Mapping[str, Any], field: str) -> str | None:
    # Absent means "no change requested"; None means "clear the reference"
    if field not in update_fields:
        return None
    if update_fields[field] == current:
        return None
    return current


def diff_asset_references(existing: Any, update_fields: Mapping[str, Any]) -> AssetDiff:
    """
    Compute the keys superseded by an edit.

    Args:
        existing: Stored record (anything with image_id, video_id, model_files)
        update_fields: Only the fields the edit supplies

    Returns:
        AssetDiff. A changed file list supersedes every key of the old list,
        including keys the new list still references.
    """
    image = _superseded_key(existing.image_id, update_fields, "image_id")
    video = _superseded_key(existing.video_id, update_fields, "video_id")

    files: tuple[str, ...] = ()
    if "model_files" in update_fields:
        current = as_file_refs(existing.model_files)
        proposed = as_file_refs(update_fields["model_files"])
        if not file_lists_equal(current, proposed):
            files = tuple(ref.key for ref in current if ref.key)

    return AssetDiff(image=image, video=video, files=files)
