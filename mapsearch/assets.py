from __future__ import annotations

import hashlib
import logging
import os
import shutil
import urllib.error
import urllib.request
from pathlib import Path

from platformdirs import user_cache_dir

logger = logging.getLogger(__name__)

CACHE_ENV = "MAPSEARCH_ASSET_CACHE_DIR"


def is_remote(source: str | Path) -> bool:
    return isinstance(source, str) and "://" in source


def _asset_cache_dir() -> Path:
    env = os.getenv(CACHE_ENV)
    if env:
        return Path(env)
    return Path(user_cache_dir("mapsearch", "mapsearch"))


def cache_path_for_url(url: str) -> Path:
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    name = Path(url.split("?", 1)[0]).name or "asset"
    return _asset_cache_dir() / digest / name


def ensure_local_asset(
    source: str | Path, *, label: str, timeout: float = 60, refresh: bool = True
) -> Path:
    """Return a local path for ``source``, downloading remote URLs first.

    Remote assets land in a per-URL cache folder. With ``refresh`` the copy is
    re-downloaded; a failed download falls back to an existing cached copy.
    """
    if not is_remote(source):
        return Path(source)

    url = str(source)
    target = cache_path_for_url(url)
    if target.exists() and not refresh:
        return target

    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_suffix(target.suffix + ".tmp")
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "mapsearch"})
        with urllib.request.urlopen(req, timeout=timeout) as resp, tmp_path.open(
            "wb"
        ) as handle:
            shutil.copyfileobj(resp, handle)
        tmp_path.replace(target)
    except (urllib.error.URLError, OSError) as exc:
        if target.exists():
            logger.warning(
                "assets.download_failed label=%s url=%s error=%s using_cached=%s",
                label,
                url,
                exc,
                target,
            )
            return target
        raise
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass

    logger.info("assets.downloaded label=%s path=%s", label, target)
    return target
