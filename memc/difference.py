"""
Set differences between the candidate files and the stores.
"""

from typing import Container, Iterable, Sequence

from .types import StatusReport


def untagged(candidates: Iterable[str], tags: Container[str],
             ignore: Container[str]) -> list[str]:
    """Candidates that are neither tagged nor ignored, in candidate order."""
    return [path for path in candidates if path not in tags and path not in ignore]


def status(candidates: Sequence[str], tags: Iterable[str],
           ignore: Iterable[str]) -> StatusReport:
    """
    Count tagged, ignored and untagged candidates.

    ``overlap_count`` is computed over the whole stores, not just the
    current candidates: a path that is both tagged and ignored is an
    inconsistency whether or not the file still exists.
    """
    tag_keys = set(tags)
    ignore_keys = set(ignore)

    ignored_count = sum(1 for path in candidates if path in ignore_keys)
    tagged_count = sum(1 for path in candidates
                       if path in tag_keys and path not in ignore_keys)
    remaining = untagged(candidates, tag_keys, ignore_keys)

    return StatusReport(
        tagged_count=tagged_count,
        ignored_count=ignored_count,
        untagged_count=len(remaining),
        overlap_count=len(tag_keys & ignore_keys),
        total=len(candidates) - ignored_count,
        untagged=remaining,
    )
