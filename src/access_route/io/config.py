# src/access_route/io/config.py
import json
import os
from collections.abc import Mapping
from pathlib import Path

from access_route.config.models import RouterConfigModel


def load_config(src: str | os.PathLike | Mapping | None = None) -> RouterConfigModel:
    """Validate a mapping, or read and validate a JSON file (``~`` and env vars expanded)."""
    if src is None:
        return RouterConfigModel()
    if isinstance(src, Mapping):
        return RouterConfigModel.model_validate(src)
    path = Path(os.path.expandvars(os.path.expanduser(str(src))))
    with path.open(encoding="utf-8") as f:
        return RouterConfigModel.model_validate(json.load(f))
