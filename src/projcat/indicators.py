"""Indicator lookup and project type classification."""

from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .models import Indicator, IndicatorKind, ProjectType

# Literal file/directory name -> indicator kind
DEFAULT_INDICATORS: Dict[str, IndicatorKind] = {
    ".git": IndicatorKind.GIT_DIRECTORY,
    "package.json": IndicatorKind.PACKAGE_JSON,
    "Gemfile": IndicatorKind.GEMFILE,
    ".gemspec": IndicatorKind.GEMSPEC,
    "Cargo.toml": IndicatorKind.CARGO_TOML,
    "pyproject.toml": IndicatorKind.PYPROJECT_TOML,
    "requirements.txt": IndicatorKind.REQUIREMENTS_TXT,
    "go.mod": IndicatorKind.GO_MOD,
    "pom.xml": IndicatorKind.POM_XML,
    "devenv.nix": IndicatorKind.DEVENV_NIX,
}

# Evaluated top to bottom; the first rule with any matching kind wins.
PRECEDENCE_RULES: Tuple[Tuple[FrozenSet[IndicatorKind], ProjectType], ...] = (
    (frozenset({IndicatorKind.CARGO_TOML}), ProjectType.RUST),
    (frozenset({IndicatorKind.PACKAGE_JSON}), ProjectType.NODEJS),
    (frozenset({IndicatorKind.GEMFILE, IndicatorKind.GEMSPEC}), ProjectType.RUBY),
    (frozenset({IndicatorKind.PYPROJECT_TOML, IndicatorKind.REQUIREMENTS_TXT}), ProjectType.PYTHON),
    (frozenset({IndicatorKind.GO_MOD}), ProjectType.GO),
    (frozenset({IndicatorKind.POM_XML}), ProjectType.JAVA),
    (frozenset({IndicatorKind.GIT_DIRECTORY}), ProjectType.GIT),
    (frozenset({IndicatorKind.DEVENV_NIX}), ProjectType.NIX),
)


class IndicatorCatalog:
    """Maps names to indicators and indicator sets to a project type."""

    def __init__(
        self,
        names: Optional[Dict[str, IndicatorKind]] = None,
        rules: Optional[Sequence[Tuple[FrozenSet[IndicatorKind], ProjectType]]] = None,
    ):
        self.names = dict(DEFAULT_INDICATORS if names is None else names)
        self.rules = tuple(PRECEDENCE_RULES if rules is None else rules)

    def indicator_for(self, name: str) -> Optional[Indicator]:
        """Return the known indicator for a file/dir name, or None."""
        kind = self.names.get(name)
        if kind is None:
            return None
        return Indicator(kind, name)

    def resolve(self, name: str) -> Indicator:
        """Return the known indicator for a name, wrapping unknown names as Custom."""
        return self.indicator_for(name) or Indicator.custom(name)

    def resolve_all(self, names: Iterable[str]) -> List[Indicator]:
        """Resolve names in order, dropping duplicates."""
        found: List[Indicator] = []
        for name in names:
            indicator = self.resolve(name)
            if indicator not in found:
                found.append(indicator)
        return found

    def classify(self, indicators: Iterable[Indicator]) -> ProjectType:
        """Pick the project type from the highest-precedence indicator present."""
        kinds = {indicator.kind for indicator in indicators}
        for rule_kinds, project_type in self.rules:
            if kinds & rule_kinds:
                return project_type
        return ProjectType.UNKNOWN


DEFAULT_CATALOG = IndicatorCatalog()
