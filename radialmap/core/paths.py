from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping


def get_artifact_dir(base_dir: Path | None = None) -> Path:
    """Return the directory rendered maps are written to.

    Defaults to `<base_dir or cwd>/.radialmap`.
    Override with `RADIALMAP_ARTIFACT_DIR` (absolute path recommended).
    """

    override = (os.environ.get("RADIALMAP_ARTIFACT_DIR") or "").strip()
    if override:
        p = Path(override)
        return p if p.is_absolute() else (Path.cwd() / p).resolve()
    return (base_dir or Path.cwd()) / ".radialmap"


def manifest_path(artifact_dir: Path) -> Path:
    return artifact_dir / "manifest.json"


def read_manifest(artifact_dir: Path) -> Dict[str, Any]:
    """Current manifest contents; empty when absent or unreadable."""
    path = manifest_path(artifact_dir)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _write_json_atomic(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def update_manifest(
    artifact_dir: Path,
    filenames: Iterable[str],
    *,
    view: Mapping[str, Any] | None = None,
) -> None:
    """Record freshly rendered maps in `manifest.json`.

    Each entry carries the file's format and size plus, when given, the view
    (focus, window, layer toggles) it was rendered from.
    """
    manifest = read_manifest(artifact_dir)
    renders = manifest.get("renders")
    if not isinstance(renders, dict):
        renders = {}

    now = time.time()
    for name in filenames:
        if not name:
            continue
        path = artifact_dir / name
        entry: Dict[str, Any] = {"format": path.suffix.lstrip(".").lower(), "rendered_at": now}
        if path.is_file():
            entry["bytes"] = path.stat().st_size
        else:
            entry["missing"] = True
        if view is not None:
            entry["view"] = dict(view)
        renders[name] = entry

    manifest["version"] = 1
    manifest["updated_at"] = now
    manifest["renders"] = renders
    _write_json_atomic(manifest_path(artifact_dir), manifest)
