"""Configuration management for vulnissues"""

import json
import os
import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from vulnissues.errors import ConfigurationError

SNYK_LABEL = "snyk"

SNAPSHOT_URL_RE = re.compile(
    r"^Explore this snapshot at https://app\.snyk\.io/org/([^/]+)/project/([^/]+)/.*"
)


@dataclass(frozen=True)
class RunOptions:
    """Settings for one invocation, passed explicitly to every stage"""

    gh_owner: str = ""
    gh_repo: str = ""
    snyk_org: str = ""
    snyk_projects: Tuple[str, ...] = ()
    project_name: Optional[str] = None
    gh_labels: Tuple[str, ...] = ()
    severity_label: bool = True
    parse_manifest_name: bool = True
    batch: bool = True
    minimum_severity: str = "medium"
    auto_generate: bool = False
    dry_run: bool = False

    def with_overrides(self, **changes: Any) -> "RunOptions":
        return replace(self, **changes)


class Settings:
    """Resolve and persist user settings.

    Resolution order for each setting (highest first):
    1. Explicit CLI value
    2. Environment variable (``SNYK_TOKEN`` / ``GH_PAT`` for secrets,
       ``VULNISSUES_<NAME>`` otherwise)
    3. Saved settings file
    4. Default from RunOptions
    """

    SECRET_ENV = {
        "snyk_token": "SNYK_TOKEN",
        "gh_pat": "GH_PAT",
    }

    BOOLEAN_SETTINGS = {"severity_label", "parse_manifest_name", "batch", "auto_generate"}
    LIST_SETTINGS = {"snyk_projects", "gh_labels"}

    # Persisted keys; secrets and dry_run are never saved
    PERSISTED = (
        "gh_owner",
        "gh_repo",
        "snyk_org",
        "snyk_projects",
        "project_name",
        "gh_labels",
        "severity_label",
        "parse_manifest_name",
        "batch",
        "minimum_severity",
        "auto_generate",
    )

    @classmethod
    def config_path(cls) -> Path:
        """Settings file, overridable with VULNISSUES_CONFIG_DIR"""
        base = os.getenv("VULNISSUES_CONFIG_DIR")
        root = Path(base) if base else Path.home() / ".config" / "vulnissues"
        return root / "settings.json"

    @classmethod
    def load_saved(cls, path: Optional[Path] = None) -> Dict[str, Any]:
        """Load saved settings, or {} if the file is missing or invalid."""
        path = path or cls.config_path()
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if key in cls.PERSISTED}

    @classmethod
    def save(cls, options: RunOptions, path: Optional[Path] = None) -> Path:
        path = path or cls.config_path()
        data = {key: value for key, value in asdict(options).items() if key in cls.PERSISTED}
        data["snyk_projects"] = list(options.snyk_projects)
        data["gh_labels"] = list(options.gh_labels)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    @classmethod
    def get_secret(cls, name: str, cli_value: Optional[str] = None) -> Optional[str]:
        if cli_value:
            return cli_value
        return os.getenv(cls.SECRET_ENV[name]) or None

    @classmethod
    def resolve(
        cls,
        cli_values: Mapping[str, Any],
        saved: Optional[Mapping[str, Any]] = None,
    ) -> RunOptions:
        """
        Build RunOptions from CLI values, environment, saved settings and defaults.

        Args:
            cli_values: Values given on the command line (None means "not given")
            saved: Saved settings; loaded from disk when omitted

        Returns:
            Resolved RunOptions
        """
        saved = cls.load_saved() if saved is None else saved
        values: Dict[str, Any] = {}
        for option in fields(RunOptions):
            name = option.name
            value = cli_values.get(name)
            if value is None:
                value = cls._from_env(name)
            if value is None:
                value = saved.get(name)
            if value is None:
                continue
            values[name] = cls._coerce(name, value)

        values["gh_labels"] = tuple(
            dict.fromkeys(list(values.get("gh_labels", ())) + [SNYK_LABEL])
        )
        return RunOptions(**values)

    @classmethod
    def _from_env(cls, name: str) -> Optional[str]:
        return os.getenv(f"VULNISSUES_{name.upper()}") or None

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name in cls.LIST_SETTINGS:
            return tuple(_split_list(value))
        if name in cls.BOOLEAN_SETTINGS or name == "dry_run":
            return _to_bool(name, value)
        if name == "minimum_severity":
            level = str(value).lower()
            if level not in ("low", "medium", "high", "critical"):
                raise ConfigurationError(f"Invalid minimum severity: {value!r}")
            return level
        return value


def _split_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "y", "on"):
        return True
    if text in ("0", "false", "no", "n", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}")


def parse_snapshot_stdin(text: str) -> Tuple[str, str]:
    """
    Extract the Snyk org and project from ``snyk monitor`` output.

    Args:
        text: Captured standard input

    Returns:
        (org, project) tuple from the last matching line

    Raises:
        ConfigurationError: If no snapshot URL is present
    """
    org = project = None
    for line in text.splitlines():
        match = SNAPSHOT_URL_RE.match(line)
        if match:
            org, project = match.group(1), match.group(2)
    if not org or not project:
        raise ConfigurationError("Could not parse required Snyk Org and Snyk Project from stdin.")
    return org, project
