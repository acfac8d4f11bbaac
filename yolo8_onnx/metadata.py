from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Union


NAMES_HEADER = "names:"


def _names_block(lines: Iterator[str]) -> Iterator[str]:
    # Yields the lines between `names:` and the first blank or colon-free line.
    for raw in lines:
        if raw.strip() == NAMES_HEADER:
            break
    else:
        return
    for raw in lines:
        entry = raw.strip()
        if entry.startswith("#"):
            continue
        if not entry or ":" not in entry:
            return
        yield entry


def load_class_names(metadata_path: Union[str, Path]) -> Dict[int, str]:
    """
    Read the class-id to label mapping of a `coco.yaml`-style file:

        names:
          0: person
          1: bicycle

    The mapping ends at the first blank line or line without a colon.
    Keys that are not integers are ignored.
    """

    class_names: Dict[int, str] = {}
    with open(metadata_path, "r", encoding="utf-8") as f:
        for entry in _names_block(iter(f)):
            class_id, label = (part.strip() for part in entry.split(":", 1))
            if class_id.isdigit():
                class_names[int(class_id)] = label.strip("'\"")
    return class_names
