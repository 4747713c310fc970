"""Locate or download the JPL DE kernel read by :class:`solar.spice.SpiceEphemeris`."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import httpx

from .config import EngineConfig

__all__ = [
    "KERNEL_URL",
    "KERNEL_FILENAME",
    "EphemerisAcquisitionError",
    "fetch_kernel",
    "ensure_ephemeris",
    "resolve_ephemeris_source",
]

LOGGER = logging.getLogger(__name__)

KERNEL_URL = "https://naif.jpl.nasa.gov/pub/naif/generic_kernels/spk/planets/de442.bsp"
KERNEL_FILENAME = "de442.bsp"
CHUNK_SIZE = 1 << 20


class EphemerisAcquisitionError(RuntimeError):
    """The configured kernel is unusable or could not be downloaded."""


def fetch_kernel(url: str, target: Path, client: Optional[httpx.Client] = None) -> Path:
    """Stream *url* into *target* through a ``.part`` file renamed on success."""

    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")
    LOGGER.info(json.dumps({"event": "ephemeris_downloading", "url": url, "destination": str(target)}))

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=httpx.Timeout(120.0, connect=30.0), follow_redirects=True)
    written = 0
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            expected = int(response.headers.get("Content-Length") or 0)
            with partial.open("wb") as sink:
                for block in response.iter_bytes(chunk_size=CHUNK_SIZE):
                    sink.write(block)
                    written += len(block)
        if expected and written != expected:
            raise EphemerisAcquisitionError(
                f"Truncated download from {url}: {written} of {expected} bytes"
            )
        partial.replace(target)
    except (httpx.HTTPError, OSError) as exc:
        partial.unlink(missing_ok=True)
        raise EphemerisAcquisitionError(f"Failed to download ephemeris from {url}: {exc}") from exc
    except EphemerisAcquisitionError:
        partial.unlink(missing_ok=True)
        raise
    finally:
        if owns_client:
            client.close()

    LOGGER.info(json.dumps({"event": "ephemeris_downloaded", "destination": str(target), "bytes": written}))
    return target


def ensure_ephemeris(
    path: Path, url: str = KERNEL_URL, client: Optional[httpx.Client] = None
) -> Path:
    """Return *path* once it names a ``.bsp`` file or a directory holding one.

    A missing ``.bsp`` path is downloaded in place; any other missing path is
    created as a directory and receives ``de442.bsp``.
    """

    if path.is_dir():
        if not any(path.glob("*.bsp")):
            fetch_kernel(url, path / KERNEL_FILENAME, client)
        return path
    if path.suffix.lower() == ".bsp":
        if not path.exists():
            fetch_kernel(url, path, client)
        return path
    if path.exists():
        raise EphemerisAcquisitionError(f"Ephemeris file must have .bsp extension: {path}")
    path.mkdir(parents=True)
    fetch_kernel(url, path / KERNEL_FILENAME, client)
    return path


def resolve_ephemeris_source(
    config: Optional[EngineConfig] = None, client: Optional[httpx.Client] = None
) -> Path:
    """Kernel location for *config*: ``DE_BSP`` if set, else the download cache."""

    config = config or EngineConfig.from_env()
    if config.kernel_path is not None:
        return ensure_ephemeris(config.kernel_path, client=client)
    return ensure_ephemeris(config.kernel_cache_dir / KERNEL_FILENAME, client=client)
