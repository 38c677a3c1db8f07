"""Vulnerability data model"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Severity(str, Enum):
    """Finding severity levels, most severe first"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def _missing_(cls, value):
        """Handle case-insensitive matching"""
        if isinstance(value, str):
            value = value.lower()
            for member in cls:
                if member.value == value:
                    return member
        return None

    @property
    def rank(self) -> int:
        """Position in SEVERITY_ORDER (0 is most severe)"""
        return SEVERITY_ORDER.index(self.value)

    @classmethod
    def at_or_above(cls, minimum: Optional[str]) -> List["Severity"]:
        """
        Return severities at or above a minimum level.

        An unknown or missing minimum falls back to "medium"; "low" returns every level.
        """
        try:
            threshold = cls(minimum) if minimum else cls.MEDIUM
        except ValueError:
            threshold = cls.MEDIUM
        return [member for member in cls if member.rank <= threshold.rank]


SEVERITY_ORDER = ("critical", "high", "medium", "low")


@dataclass(frozen=True)
class PathElement:
    """One hop of a dependency chain"""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


DependencyPath = List[PathElement]


@dataclass(frozen=True)
class Project:
    """A scanned project (one manifest or image)"""

    id: str
    name: str
    browse_url: str = ""
    is_monitored: bool = True
    issue_count_total: int = 0
    image_tag: Optional[str] = None


@dataclass
class Origin:
    """Paths through which one project introduces a finding"""

    project: Project
    paths: List[DependencyPath] = field(default_factory=list)


@dataclass
class Vulnerability:
    """A finding from the scanning service, possibly merged across projects"""

    id: str
    package_name: str
    package_versions: List[str]
    severity: str
    priority_score: int
    title: str
    description: str = ""
    url: str = ""
    identifiers: Dict[str, List[str]] = field(default_factory=dict)
    origins: List[Origin] = field(default_factory=list)

    @property
    def projects(self) -> List[Project]:
        """Originating projects, without repeats, in origin order"""
        seen = set()
        projects = []
        for origin in self.origins:
            if origin.project.id in seen:
                continue
            seen.add(origin.project.id)
            projects.append(origin.project)
        return projects

    @property
    def path_count(self) -> int:
        return sum(len(origin.paths) for origin in self.origins)

    @property
    def extra_identifiers(self) -> List[str]:
        """Identifier values flattened across schemes, in mapping order"""
        return [value for values in self.identifiers.values() for value in values]

    @property
    def version_label(self) -> str:
        return "/".join(self.package_versions)
