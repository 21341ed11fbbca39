"""Per-file coverage deltas between the base and head revisions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flowcov.models.coverage import Revision

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from flowcov.models.coverage import DeltaEntry

logger = logging.getLogger(__name__)


class MissingSampleError(LookupError):
    """A modified file has no coverage sample at one of the revisions."""

    def __init__(self, filename: str, revision: Revision) -> None:
        super().__init__(f"No {revision.value} coverage sample for {filename}")
        self.filename = filename
        self.revision = revision


def compute_deltas(
    base: Mapping[str, float | None],
    head: Mapping[str, float | None],
    modified: Iterable[str],
    others: Iterable[tuple[str, str]],
) -> dict[str, DeltaEntry]:
    """Build the filename -> delta-or-label mapping.

    Numeric entries are written first, in ``modified`` order, as
    ``head - base``; a None sample on either side yields NaN. Labels from
    ``others`` are written second and replace any numeric entry for the same
    file, moving it to the end.

    Raises:
        MissingSampleError: If a modified file is absent from ``base`` or ``head``.
    """
    deltas: dict[str, DeltaEntry] = {}

    for filename in modified:
        if filename not in base:
            raise MissingSampleError(filename, Revision.BASE)
        if filename not in head:
            raise MissingSampleError(filename, Revision.HEAD)

        base_percent = base[filename]
        head_percent = head[filename]
        if base_percent is None or head_percent is None:
            logger.debug("Delta for %s is NaN (unparseable sample)", filename)
            deltas[filename] = float("nan")
        else:
            deltas[filename] = head_percent - base_percent

    for filename, status in others:
        deltas.pop(filename, None)
        deltas[filename] = status

    return deltas
