"""Progress bar over the workflow's step list (tqdm)."""

from __future__ import annotations

import sys
from typing import Callable, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


def iter_progress(
    items: Iterable[T],
    total: Optional[int] = None,
    desc: Optional[str] = None,
    enabled: bool = True,
    label: Optional[Callable[[T], str]] = None,
) -> Iterator[T]:
    """Yield ``items`` while advancing a bar on stderr.

    ``label`` names the current item next to the bar. With ``enabled`` off
    the items pass through untouched, which is what non-interactive runs
    (cron, nohup) want.
    """
    if not enabled:
        yield from items
        return

    from tqdm import tqdm

    with tqdm(
        items,
        total=total,
        desc=desc,
        file=sys.stderr,
        unit="step",
        bar_format="{desc}: {n_fmt}/{total_fmt} |{bar:30}| {postfix}",
        ncols=80,
        leave=False,
    ) as bar:
        for item in bar:
            if label is not None:
                bar.set_postfix_str(label(item), refresh=False)
            yield item
