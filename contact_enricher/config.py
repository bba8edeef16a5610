"""Configuration helpers for the contact enrichment jobs."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .extraction.stop_list import StopLists

LOGGER = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        import yaml

        data = yaml.safe_load(text)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass
class CRMSettings:
    """Connection details for the Bullhorn REST API."""

    auth_url: str
    rest_login_url: str
    client_id: str
    client_secret: str
    username: str
    password: str
    timeout: float = 30.0
    search_count: int = 1
    # None keeps retrying the REST login until it succeeds.
    login_max_attempts: Optional[int] = None
    login_retry_delay: float = 0.0

    def __repr__(self) -> str:
        return (
            f"CRMSettings(auth_url={self.auth_url!r}, rest_login_url={self.rest_login_url!r}, "
            f"client_id={self.client_id!r}, username={self.username!r})"
        )


@dataclass
class StoreSettings:
    """Layout of the staging workbook."""

    path: Path
    contact_sheet: str = "Contacts"
    parameters_sheet: str = "Parameters"
    last_check_cell: str = "A2"
    phone_stop_list_column: str = "B"
    domain_stop_list_column: str = "C"


@dataclass
class EnricherSettings:
    crm: Optional[CRMSettings]
    store: StoreSettings
    stop_lists: StopLists = field(default_factory=StopLists)
    maildir: Optional[Path] = None


_REQUIRED_CRM_KEYS = ("auth_url", "rest_login_url", "client_id", "client_secret", "username", "password")


def _number(section: Dict[str, Any], key: str, default: Any, cast: Callable[[Any], Any]) -> Any:
    value = section.get(key)
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from exc


def _build_crm_settings(section: Dict[str, Any]) -> CRMSettings:
    missing = [key for key in _REQUIRED_CRM_KEYS if not section.get(key)]
    if missing:
        raise ConfigurationError(f"CRM configuration is missing required keys: {', '.join(missing)}")

    max_attempts = _number(section, "login_max_attempts", None, int)
    if max_attempts is not None and max_attempts < 1:
        raise ConfigurationError("'login_max_attempts' must be a positive integer or null")

    return CRMSettings(
        auth_url=_with_trailing_slash(section["auth_url"]),
        rest_login_url=_with_trailing_slash(section["rest_login_url"]),
        client_id=str(section["client_id"]),
        client_secret=str(section["client_secret"]),
        username=str(section["username"]),
        password=str(section["password"]),
        timeout=_number(section, "timeout", 30.0, float),
        search_count=_number(section, "search_count", 1, int),
        login_max_attempts=max_attempts,
        login_retry_delay=_number(section, "login_retry_delay", 0.0, float),
    )


def _build_store_settings(section: Dict[str, Any], base_dir: Optional[Path]) -> StoreSettings:
    raw_path = section.get("path")
    if not raw_path:
        raise ConfigurationError("Store configuration requires a 'path' to the staging workbook")
    path = Path(raw_path).expanduser()
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path

    defaults = StoreSettings(path=path)
    return StoreSettings(
        path=path,
        contact_sheet=section.get("contact_sheet", defaults.contact_sheet),
        parameters_sheet=section.get("parameters_sheet", defaults.parameters_sheet),
        last_check_cell=section.get("last_check_cell", defaults.last_check_cell),
        phone_stop_list_column=section.get("phone_stop_list_column", defaults.phone_stop_list_column),
        domain_stop_list_column=section.get("domain_stop_list_column", defaults.domain_stop_list_column),
    )


def build_settings(config: Dict[str, Any], *, base_dir: str | Path | None = None) -> EnricherSettings:
    """Turn a raw configuration mapping into typed settings.

    Relative paths are resolved against ``base_dir`` (usually the directory of
    the configuration file).  The ``crm`` section is optional so the mail scan
    can run without CRM credentials.
    """

    resolved_base = Path(base_dir) if base_dir is not None else None

    store_section = config.get("store")
    if not isinstance(store_section, dict):
        raise ConfigurationError("Configuration requires a 'store' section")
    store = _build_store_settings(store_section, resolved_base)

    crm_section = config.get("crm")
    crm = _build_crm_settings(crm_section) if isinstance(crm_section, dict) else None
    if crm is None:
        LOGGER.debug("No CRM section configured; reconciliation will be unavailable")

    stop_section = config.get("stop_lists") or {}
    stop_lists = StopLists.from_values(
        phones=stop_section.get("phones", []),
        domains=stop_section.get("domains", []),
    )

    maildir = config.get("maildir")
    maildir_path = None
    if maildir:
        maildir_path = Path(maildir).expanduser()
        if resolved_base is not None and not maildir_path.is_absolute():
            maildir_path = resolved_base / maildir_path

    return EnricherSettings(crm=crm, store=store, stop_lists=stop_lists, maildir=maildir_path)


def _with_trailing_slash(url: str) -> str:
    url = str(url)
    return url if url.endswith("/") else f"{url}/"
