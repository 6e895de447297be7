"""Persistent JSON config helpers.

Stores connection profiles, the active profile, and UI preferences
(theme, tree-pane width). Reads never raise: malformed or missing config
falls back safely. Profile writes raise ``ProfileError`` so the CLI can
report them; preference writes are best-effort.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from platformdirs import user_config_dir

from .errors import NoDefaultProfileError, ProfileError, ProfileNotFoundError, ProfileValidationError
from .store import DEFAULT_DIAL_TIMEOUT_SECONDS, DEFAULT_REQUEST_TIMEOUT_SECONDS, StoreConfig, TLSConfig

logger = logging.getLogger(__name__)

APP_NAME = "lazyetcd"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_FILE_MODE = 0o600

PASSWORD_PREFIX = "base64:"
LOCAL_PROFILE_NAME = "local"
LOCAL_ENDPOINT = "localhost:2379"


def encode_password(password: str) -> str:
    """Return storage form ``base64:...`` of ``password`` (empty stays empty)."""
    if not password:
        return ""
    return PASSWORD_PREFIX + base64.b64encode(password.encode("utf-8")).decode("ascii")


def decode_password(stored: str) -> str:
    """Decode ``base64:...`` passwords; plain or undecodable text is returned as-is."""
    if not stored or not stored.startswith(PASSWORD_PREFIX):
        return stored
    try:
        return base64.b64decode(stored[len(PASSWORD_PREFIX):], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return stored


@dataclass(frozen=True)
class TLSProfile:
    enabled: bool = False
    ca_file: str = ""
    cert_file: str = ""
    key_file: str = ""
    insecure_skip_verify: bool = False


@dataclass(frozen=True)
class Profile:
    """Named connection profile.

    ``password`` holds the stored form (possibly ``base64:`` encoded).
    """

    name: str
    endpoints: tuple[str, ...] = field(default_factory=tuple)
    username: str = ""
    password: str = ""
    tls: TLSProfile | None = None
    default: bool = False

    def validate(self) -> None:
        if not self.name.strip():
            raise ProfileValidationError("profile name is required")
        if not self.endpoints:
            raise ProfileValidationError("at least one endpoint is required")

    @property
    def has_auth(self) -> bool:
        return bool(self.username)

    @property
    def has_tls(self) -> bool:
        return self.tls is not None and self.tls.enabled

    def display_string(self) -> str:
        parts = [self.name]
        if self.endpoints:
            parts.append(f"({self.endpoints[0]})")
        flags = [
            label
            for label, enabled in (("auth", self.has_auth), ("tls", self.has_tls), ("default", self.default))
            if enabled
        ]
        if flags:
            parts.append(f"[{', '.join(flags)}]")
        return " ".join(parts)

    def to_store_config(self) -> StoreConfig:
        tls = None
        if self.tls is not None and self.tls.enabled:
            tls = TLSConfig(
                enabled=True,
                ca_file=self.tls.ca_file,
                cert_file=self.tls.cert_file,
                key_file=self.tls.key_file,
                insecure_skip_verify=self.tls.insecure_skip_verify,
            )
        return StoreConfig(
            endpoints=tuple(self.endpoints),
            username=self.username,
            password=decode_password(self.password),
            tls=tls,
            dial_timeout=DEFAULT_DIAL_TIMEOUT_SECONDS,
            request_timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        )


def default_local_profile() -> Profile:
    return Profile(name=LOCAL_PROFILE_NAME, endpoints=(LOCAL_ENDPOINT,), default=True)


def profile_from_endpoint(endpoint: str, username: str = "", password: str = "") -> Profile:
    """Ad-hoc profile for ``--endpoint`` (never persisted)."""
    endpoints = tuple(part.strip() for part in endpoint.split(",") if part.strip())
    return Profile(name=endpoints[0] if endpoints else endpoint, endpoints=endpoints, username=username, password=password)


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError):
        logger.warning("ignoring unreadable config %s", CONFIG_PATH, exc_info=True)
        return {}
    return data if isinstance(data, dict) else {}


def _write_config(data: dict[str, object]) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    os.chmod(CONFIG_PATH, CONFIG_FILE_MODE)


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so that UI
    preference writes never interrupt the session.
    """
    try:
        _write_config(data)
    except OSError:
        logger.warning("could not write config %s", CONFIG_PATH, exc_info=True)


def _save_profiles_config(data: dict[str, object]) -> None:
    try:
        _write_config(data)
    except OSError as exc:
        raise ProfileError(f"could not write {CONFIG_PATH}: {exc}") from exc


def _str_field(raw: dict[str, object], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def _parse_tls(raw: object) -> TLSProfile | None:
    if not isinstance(raw, dict):
        return None
    return TLSProfile(
        enabled=raw.get("enabled") is True,
        ca_file=_str_field(raw, "ca_file"),
        cert_file=_str_field(raw, "cert_file"),
        key_file=_str_field(raw, "key_file"),
        insecure_skip_verify=raw.get("insecure_skip_verify") is True,
    )


def _parse_profile(raw: object) -> Profile | None:
    if not isinstance(raw, dict):
        return None
    name = _str_field(raw, "name").strip()
    endpoints_raw = raw.get("endpoints")
    if isinstance(endpoints_raw, str):
        endpoints_raw = [endpoints_raw]
    if not isinstance(endpoints_raw, list):
        endpoints_raw = []
    endpoints = tuple(item.strip() for item in endpoints_raw if isinstance(item, str) and item.strip())
    if not name or not endpoints:
        return None
    return Profile(
        name=name,
        endpoints=endpoints,
        username=_str_field(raw, "username"),
        password=_str_field(raw, "password"),
        tls=_parse_tls(raw.get("tls")),
        default=raw.get("default") is True,
    )


def _serialize_profile(profile: Profile) -> dict[str, object]:
    data: dict[str, object] = {"name": profile.name, "endpoints": list(profile.endpoints)}
    if profile.username:
        data["username"] = profile.username
    if profile.password:
        stored = profile.password
        if not stored.startswith(PASSWORD_PREFIX):
            stored = encode_password(stored)
        data["password"] = stored
    if profile.tls is not None:
        data["tls"] = {
            "enabled": profile.tls.enabled,
            "ca_file": profile.tls.ca_file,
            "cert_file": profile.tls.cert_file,
            "key_file": profile.tls.key_file,
            "insecure_skip_verify": profile.tls.insecure_skip_verify,
        }
    if profile.default:
        data["default"] = True
    return data


def load_profiles() -> list[Profile]:
    """Return valid profiles in file order; malformed entries are dropped."""
    raw_profiles = load_config().get("profiles")
    if not isinstance(raw_profiles, list):
        return []
    profiles: list[Profile] = []
    for raw in raw_profiles:
        profile = _parse_profile(raw)
        if profile is None:
            logger.warning("skipping malformed profile entry: %r", raw)
            continue
        profiles.append(profile)
    return profiles


def load_active_profile_name() -> str | None:
    value = load_config().get("active_profile")
    return value if isinstance(value, str) and value else None


def get_profile(name: str) -> Profile:
    for profile in load_profiles():
        if profile.name == name:
            return profile
    raise ProfileNotFoundError(name)


def default_profile() -> Profile:
    """Resolve the startup profile: active, then flagged default, then first."""
    profiles = load_profiles()
    active = load_active_profile_name()
    if active:
        for profile in profiles:
            if profile.name == active:
                return profile
    for profile in profiles:
        if profile.default:
            return profile
    if profiles:
        return profiles[0]
    raise NoDefaultProfileError()


def _store_profiles(config: dict[str, object], profiles: list[Profile]) -> None:
    config["profiles"] = [_serialize_profile(profile) for profile in profiles]
    _save_profiles_config(config)


def add_profile(profile: Profile) -> None:
    """Insert or replace ``profile`` by name.

    The first profile, or one flagged ``default``, becomes the only default.
    """
    profile.validate()
    config = load_config()
    profiles = load_profiles()
    if not profiles:
        profile = replace(profile, default=True)
    if profile.default:
        profiles = [replace(item, default=False) for item in profiles]
    for idx, existing in enumerate(profiles):
        if existing.name == profile.name:
            profiles[idx] = profile
            break
    else:
        profiles.append(profile)
    _store_profiles(config, profiles)


def delete_profile(name: str) -> None:
    config = load_config()
    profiles = load_profiles()
    remaining = [profile for profile in profiles if profile.name != name]
    if len(remaining) == len(profiles):
        raise ProfileNotFoundError(name)
    if config.get("active_profile") == name:
        config.pop("active_profile", None)
    _store_profiles(config, remaining)


def set_active_profile(name: str) -> None:
    get_profile(name)
    config = load_config()
    config["active_profile"] = name
    _save_profiles_config(config)


def init_config() -> Path:
    """Write a config holding the ``local`` profile unless one exists."""
    if CONFIG_PATH.exists():
        raise ProfileError(f"config already exists: {CONFIG_PATH}")
    profile = default_local_profile()
    _save_profiles_config({"profiles": [_serialize_profile(profile)], "active_profile": profile.name})
    return CONFIG_PATH


def _load_percent(key: str) -> float | None:
    """Read a percentage config value constrained to the open interval (0, 100)."""
    value = load_config().get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0 or value >= 100:
        return None
    return float(value)


def _save_percent(key: str, total_width: int, left_width: int) -> None:
    if total_width <= 0:
        return
    percent = max(1.0, min(99.0, (left_width / total_width) * 100.0))
    config = load_config()
    config[key] = round(percent, 2)
    save_config(config)


def load_left_pane_percent() -> float | None:
    return _load_percent("left_pane_percent")


def save_left_pane_percent(total_width: int, left_width: int) -> None:
    _save_percent("left_pane_percent", total_width, left_width)


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    value = load_config().get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def save_theme_name(theme_name: str) -> None:
    stripped = str(theme_name).strip()
    if not stripped:
        return
    config = load_config()
    config["theme"] = stripped
    save_config(config)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "LOCAL_ENDPOINT",
    "LOCAL_PROFILE_NAME",
    "Profile",
    "TLSProfile",
    "add_profile",
    "decode_password",
    "default_local_profile",
    "default_profile",
    "delete_profile",
    "encode_password",
    "get_profile",
    "init_config",
    "load_active_profile_name",
    "load_config",
    "load_left_pane_percent",
    "load_profiles",
    "load_theme_name",
    "profile_from_endpoint",
    "save_config",
    "save_left_pane_percent",
    "save_theme_name",
    "set_active_profile",
]
