"""
Job identity and group matchers.

A job is addressed by its (group, name) pair. Single-job operations resolve
that pair into a JobKey; bulk queries resolve into a GroupMatcher which the
engine uses to select keys.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class JobKey:
    """Unique address of one job within the engine's namespace."""

    group: str
    name: str

    def __str__(self) -> str:
        return f"{self.group}.{self.name}"


class MatchOperator(str, Enum):
    """Group matcher operators."""

    ANY = "ANY"
    EQUALS = "EQUALS"


@dataclass(frozen=True)
class GroupMatcher:
    """
    Filter over job keys by group.

    ANY selects every key. EQUALS selects keys whose group is exactly
    `value` (case-sensitive, no wildcards).
    """

    operator: MatchOperator
    value: Optional[str] = None

    def matches(self, key: JobKey) -> bool:
        if self.operator == MatchOperator.ANY:
            return True
        return key.group == self.value


def resolve_identity(group: str, name: str) -> JobKey:
    """
    Build the JobKey for a (group, name) pair.

    Format is not validated here; empty strings are handed to the engine
    as-is and its own validation decides.

    Raises:
        ValueError: If group or name is None
    """
    if group is None or name is None:
        raise ValueError("Job group and name must not be None")
    return JobKey(group=group, name=name)


def match_any_group() -> GroupMatcher:
    """Matcher selecting every job regardless of group."""
    return GroupMatcher(MatchOperator.ANY)


def match_group(group: str) -> GroupMatcher:
    """Matcher selecting jobs whose group equals `group` exactly."""
    if group is None:
        raise ValueError("Job group must not be None")
    return GroupMatcher(MatchOperator.EQUALS, group)
