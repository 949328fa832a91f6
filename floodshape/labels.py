"""Flood labels from SEN12FLOOD label lists (S1list.json / S2list.json)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from floodshape.config import LABEL_FILES
from floodshape.errors import LabelFileError
from floodshape.metadata import strip_extension

logger = logging.getLogger(__name__)


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def collect_labels(node: Any, out: Dict[str, bool], inherited: bool = False) -> None:
    """Walk a parsed label list and record base name -> FLOODING.

    Any mapping with a ``filename`` key contributes an entry. Its flag is the
    mapping's own ``FLOODING`` value, or the nearest enclosing one (false if
    none). Later duplicates overwrite earlier ones.
    """
    if isinstance(node, dict):
        flag = _as_flag(node["FLOODING"]) if "FLOODING" in node else inherited
        filename = node.get("filename")
        if isinstance(filename, str) and filename.strip():
            out[strip_extension(filename.strip())] = flag
        for value in node.values():
            if isinstance(value, (dict, list)):
                collect_labels(value, out, flag)
    elif isinstance(node, list):
        for item in node:
            collect_labels(item, out, inherited)


class FloodLabels:
    """Read-only lookup from image base name to flood flag."""

    def __init__(self, by_name: Optional[Dict[str, bool]] = None):
        self._by_name: Dict[str, bool] = dict(by_name or {})
        # Longest names first so the most specific label wins a substring match.
        self._search_order = sorted(self._by_name, key=lambda name: (-len(name), name))

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def lookup(self, image_base_name: str) -> Optional[bool]:
        """Flag for an image: exact name first, else the longest label name it contains."""
        if image_base_name in self._by_name:
            return self._by_name[image_base_name]
        for name in self._search_order:
            if name in image_base_name:
                return self._by_name[name]
        return None


def parse_label_file(path: Path) -> Dict[str, bool]:
    """Parse one label list.

    Raises:
        LabelFileError: If the file cannot be read or is not valid JSON.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise LabelFileError(f"Failed to read label file {path}: {exc}") from exc

    labels: Dict[str, bool] = {}
    collect_labels(data, labels)
    logger.info(f"Parsed {len(labels)} flood label(s) from {path.name}")
    return labels


def load_flood_labels(root_dir: Path, file_names: Iterable[str] = LABEL_FILES) -> FloodLabels:
    """Merge every label list present in the root folder (later files win on duplicates)."""
    merged: Dict[str, bool] = {}
    for file_name in file_names:
        path = root_dir / file_name
        if path.exists():
            merged.update(parse_label_file(path))
        else:
            logger.debug(f"Label file {path} not present")
    return FloodLabels(merged)
