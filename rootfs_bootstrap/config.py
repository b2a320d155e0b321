from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_CONFIG_PATH = "/etc/rootfs-bootstrap.yaml"

DEFAULT_APK = "apk"
DEFAULT_KEYS_DIR = "/etc/apk/keys"
DEFAULT_LOCAL_SOURCE = "/run/live/rootfs/filesystem.squashfs"
DEFAULT_REPOSITORIES_FILE = "/etc/apk/repositories"
DEFAULT_REPOSITORIES_DIR = "/etc/apk/repositories.d"


@dataclass(frozen=True)
class BootstrapConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _str(self, key: str, default: str) -> str:
        return str(self.raw.get(key) or default)

    def _list(self, key: str, default: List[str]) -> List[str]:
        value = self.raw.get(key)
        if value is None:
            return list(default)
        if isinstance(value, str):
            return value.split()
        return [str(v) for v in value]

    @property
    def apk(self) -> str:
        return self._str("apk", DEFAULT_APK)

    @property
    def keys_dir(self) -> str:
        return self._str("keys_dir", DEFAULT_KEYS_DIR)

    @property
    def local_source(self) -> str:
        return self._str("local_source", DEFAULT_LOCAL_SOURCE)

    @property
    def repositories_file(self) -> str:
        return self._str("repositories_file", DEFAULT_REPOSITORIES_FILE)

    @property
    def repositories_dir(self) -> str:
        return self._str("repositories_dir", DEFAULT_REPOSITORIES_DIR)

    @property
    def default_packages(self) -> List[str]:
        return self._list("default_packages", ["base-full"])

    @property
    def base_packages(self) -> List[str]:
        return self._list("base_packages", ["base-minimal"])

    @property
    def ostree_base_packages(self) -> List[str]:
        return self._list("ostree_base_packages", ["base-minimal-ostree"])

    @property
    def log_path(self) -> Optional[str]:
        value = self.raw.get("log_path")
        return str(value) if value else None


def load_config(path: Optional[str]) -> BootstrapConfig:
    """Load the YAML defaults file.

    With path=None the system-wide file is used if present; an explicitly
    requested file must exist.
    """

    if path is None:
        p = Path(DEFAULT_CONFIG_PATH)
        if not p.exists():
            return BootstrapConfig()
    else:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"config must be YAML: {p}")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the config file") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"{p}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")

    return BootstrapConfig(raw=raw)
