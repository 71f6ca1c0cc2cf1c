from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ATS_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "ats.yaml"

Lexicons = dict[str, tuple[str, ...]]


def _flatten(node: Any, prefix: str, out: Lexicons, source: Path) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            _flatten(value, f"{prefix}.{key}" if prefix else str(key), out, source)
        return
    if not isinstance(node, list):
        raise RuntimeError(f"Invalid ATS config '{source}': '{prefix}' must be a list of terms.")
    terms: list[str] = []
    for item in node:
        if isinstance(item, (dict, list)) or item is None:
            raise RuntimeError(f"Invalid ATS config '{source}': '{prefix}' holds a non-scalar term {item!r}.")
        term = str(item).strip()
        if term:
            terms.append(term)
    out[prefix] = tuple(terms)


def parse_ats_lexicons(raw: str, source: Path = DEFAULT_ATS_CONFIG_PATH) -> Lexicons:
    """Parse lexicon YAML into a flat ``{"action_verbs.pt": (...), ...}`` index.

    Every leaf must be a list of scalar terms; blank terms are dropped.
    """
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in ATS config '{source}': {exc}") from exc
    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid ATS config '{source}': expected a top-level mapping.")

    lexicons: Lexicons = {}
    _flatten(parsed, "", lexicons, source)
    return lexicons


@lru_cache(maxsize=1)
def load_ats_lexicons() -> Lexicons:
    """Read repo-level config/ats.yaml once per process."""
    try:
        raw = DEFAULT_ATS_CONFIG_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"ATS config not readable at '{DEFAULT_ATS_CONFIG_PATH}': {exc}") from exc
    return parse_ats_lexicons(raw)


def get_ats_list(path: str) -> tuple[str, ...]:
    """Terms stored under a dot path such as 'action_verbs.pt'; unknown paths are empty."""
    return load_ats_lexicons().get(path, ())
