from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from poto.constants import HIDDEN_PREFIX
from poto.schemas.config import FolderRule, ScannerConfig

__all__ = [
    "PolicyDecision",
    "ScanPolicy",
    "evaluate_directory",
    "normalize_dir",
]


class PolicyDecision(str, Enum):
    DESCEND = "descend"
    SKIP_SUBTREE = "skip-subtree"


def normalize_dir(path: str) -> str:
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


@dataclass(frozen=True)
class _Rule:
    allowed: FrozenSet[str]
    blocked: FrozenSet[str]
    recursive: bool


@dataclass(frozen=True)
class ScanPolicy:
    """Immutable, pre-normalized view of the directory pruning settings."""

    ignore_hidden: bool = True
    excluded: FrozenSet[str] = frozenset()
    ignore_patterns: Tuple[str, ...] = ()
    rules: Mapping[str, _Rule] = field(default_factory=dict)

    @classmethod
    def from_config(cls, scanner: ScannerConfig) -> "ScanPolicy":
        rules: Dict[str, _Rule] = {}
        for folder, rule in scanner.per_folder_rules.items():
            rules[normalize_dir(folder)] = _to_rule(rule)
        return cls(
            ignore_hidden=scanner.ignore_hidden,
            excluded=frozenset(name.lower() for name in scanner.excluded_directories),
            ignore_patterns=tuple(scanner.ignore_patterns),
            rules=rules,
        )

    def rule_for(self, folder: str) -> Optional[_Rule]:
        return self.rules.get(folder)


def _to_rule(rule: FolderRule) -> _Rule:
    return _Rule(
        allowed=frozenset(rule.allowed_subfolders),
        blocked=frozenset(rule.blocked_subfolders),
        recursive=rule.scan_recursively,
    )


def _under_non_recursive_rule(policy: ScanPolicy, parent: str) -> bool:
    # The parent's own rule still admits its direct children, so start one level up.
    current = parent
    while True:
        upper = os.path.dirname(current)
        if upper == current:
            return False
        rule = policy.rule_for(upper)
        if rule is not None and not rule.recursive:
            return True
        current = upper


def evaluate_directory(name: str, path: str, parent: str, policy: ScanPolicy) -> PolicyDecision:
    """Decide whether the walker descends into ``path``.

    Rules run in a fixed order and the first refusal wins: hidden names,
    excluded names (case-insensitive), wildcard ignore patterns, then the
    folder rule of ``parent`` (allow-list, block-list) and finally any
    non-recursive rule above ``parent``.
    """
    if policy.ignore_hidden and name.startswith(HIDDEN_PREFIX):
        return PolicyDecision.SKIP_SUBTREE
    if name.lower() in policy.excluded:
        return PolicyDecision.SKIP_SUBTREE
    for pattern in policy.ignore_patterns:
        if fnmatch.fnmatchcase(name, pattern):
            return PolicyDecision.SKIP_SUBTREE

    if policy.rules:
        parent_key = normalize_dir(parent)
        rule = policy.rule_for(parent_key)
        if rule is not None:
            if rule.allowed and name not in rule.allowed:
                return PolicyDecision.SKIP_SUBTREE
            if name in rule.blocked:
                return PolicyDecision.SKIP_SUBTREE
        if _under_non_recursive_rule(policy, parent_key):
            return PolicyDecision.SKIP_SUBTREE
    return PolicyDecision.DESCEND
