from __future__ import annotations

import logging
import re
import time
import zipfile
from pathlib import Path
from typing import Iterable, Optional


logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def save_debug_artifact(*, debug_dir: str, name: str, content: str, suffix: str = ".html") -> Path:
    """
    Write a response body (login page, non-CSV feed response) under `debug_dir` for offline inspection.
    """
    out_root = Path(debug_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    stamp = time.strftime("%Y%m%d_%H%M%S")
    safe = _UNSAFE_NAME_RE.sub("_", name).strip("_") or "artifact"
    out_path = out_root / f"{stamp}_{safe}{suffix}"
    out_path.write_text(content or "", encoding="utf-8")
    return out_path


def create_debug_bundle(
    *,
    debug_dir: str,
    log_file: str,
    out_dir: str = "data",
    extra_paths: Optional[Iterable[str]] = None,
) -> Path:
    """
    Create a shareable zip containing debug artifacts + logs.

    Intentionally excludes secrets (.env, config.yaml, the persisted session file).
    """
    out_root = Path(out_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    stamp = time.strftime("%Y%m%d_%H%M%S")
    out_path = out_root / f"debug_bundle_{stamp}.zip"

    dbg = Path(debug_dir)
    log = Path(log_file) if log_file else None

    def _add_file(z: zipfile.ZipFile, file_path: Path, arcname: str) -> None:
        try:
            if file_path.exists() and file_path.is_file():
                z.write(file_path, arcname=arcname)
        except OSError:
            # a file disappearing mid-bundle should not fail the bundle
            logger.debug("Skipping debug file=%s", file_path, exc_info=True)

    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        if log is not None:
            _add_file(z, log, arcname=log.name)

        if dbg.exists() and dbg.is_dir():
            for p in sorted(dbg.rglob("*")):
                if not p.is_file() or p == out_path:
                    continue
                rel = p.relative_to(dbg)
                _add_file(z, p, arcname=str(Path("debug") / rel))

        for raw in extra_paths or ():
            p = Path(raw)
            if p.is_file():
                _add_file(z, p, arcname=str(Path("extra") / p.name))

    return out_path
