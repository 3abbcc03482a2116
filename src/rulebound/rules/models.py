"""Data models for rules and the project context they are scored against."""

from dataclasses import dataclass, field

SEVERITIES = ("error", "warning", "info")
MODALITIES = ("must", "should", "may")

DEFAULT_SEVERITY = "warning"
DEFAULT_MODALITY = "should"


@dataclass(frozen=True)
class Rule:
    """A single enforceable engineering rule.

    Attributes:
        id: Stable identifier derived from the rule's source path
            (e.g. "security.no-secrets"). Unique within a resolved set.
        title: Human-readable title.
        content: Rule body text (markdown).
        category: Rule category (security, style, testing, ...).
        tags: Free-form tags. Order is irrelevant.
        severity: "error", "warning", or "info".
        modality: "must", "should", or "may".
        stack: Technology stacks the rule applies to (empty = any).
        scope: Project scopes the rule applies to (empty = any).
        team: Teams the rule applies to (empty = any).
        change_types: Kinds of change the rule is about (feature, refactor, ...).
        file_path: Provenance of the rule, relative to its rules directory.
    """

    id: str
    title: str
    content: str = ""
    category: str = "general"
    tags: tuple[str, ...] = ()
    severity: str = DEFAULT_SEVERITY
    modality: str = DEFAULT_MODALITY
    stack: tuple[str, ...] = ()
    scope: tuple[str, ...] = ()
    team: tuple[str, ...] = ()
    change_types: tuple[str, ...] = ()
    file_path: str = ""

    @property
    def is_global(self) -> bool:
        """True when the rule declares no stack, scope, or team."""
        return not (self.stack or self.scope or self.team)

    @property
    def searchable_text(self) -> str:
        """Title, content, tags, and category joined for text matching."""
        return " ".join(
            part
            for part in (self.title, self.content, " ".join(self.tags), self.category)
            if part
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "tags": list(self.tags),
            "severity": self.severity,
            "modality": self.modality,
            "stack": list(self.stack),
            "scope": list(self.scope),
            "team": list(self.team),
            "change_types": list(self.change_types),
            "file_path": self.file_path,
        }


@dataclass(frozen=True)
class ProjectContext:
    """Describes the consuming project. Used only for relevance scoring."""

    name: str | None = None
    stack: tuple[str, ...] = field(default_factory=tuple)
    scope: tuple[str, ...] = field(default_factory=tuple)
    team: str | None = None
