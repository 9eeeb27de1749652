"""
Zone configuration parser.

Parses the raw_config_sql text of SHOW ALL ZONE CONFIGURATIONS, e.g.:

    ALTER TABLE t CONFIGURE ZONE USING
      range_min_bytes = 134217728,
      range_max_bytes = 536870912,
      gc.ttlseconds = 14400,
      num_replicas = 5,
      num_voters = 3,
      constraints = '{+region=us-east1: 3}',
      voter_constraints = '[+region=us-east1]',
      lease_preferences = '[[+region=us-east1],[+region=us-west1]]'

Pure functions only: text in, ZoneConfig out.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from schema_analyzer.exceptions import ZoneConfigError


class ZoneConstraintType(Enum):
    REQUIRED = '+'
    PROHIBITED = '-'


@dataclass(frozen=True)
class ZoneConfigConstraint:
    value: str
    type: ZoneConstraintType
    scope: int = 0


@dataclass
class ZoneConfig:
    target: str = ''
    range_min_bytes: int = 0
    range_max_bytes: int = 0
    gc_ttl_seconds: int = 0
    num_replicas: int = 0
    num_voters: int = 0
    constraints: List[ZoneConfigConstraint] = None
    voter_constraints: List[ZoneConfigConstraint] = None
    lease_preferences: List[ZoneConfigConstraint] = None

    def __post_init__(self):
        self.constraints = list(self.constraints or [])
        self.voter_constraints = list(self.voter_constraints or [])
        self.lease_preferences = list(self.lease_preferences or [])


_INT_SETTINGS = {
    'range_min_bytes': re.compile(r'range_min_bytes = (\d+)'),
    'range_max_bytes': re.compile(r'range_max_bytes = (\d+)'),
    'gc_ttl_seconds': re.compile(r'gc\.ttlseconds = (\d+)'),
    'num_replicas': re.compile(r'num_replicas = (\d+)'),
    'num_voters': re.compile(r'num_voters = (\d+)'),
}

# lookbehind keeps "constraints" from matching inside "voter_constraints"
_CONSTRAINT_SETTINGS = {
    'constraints': re.compile(r"(?<![\w.])constraints = '([^']*)'"),
    'voter_constraints': re.compile(r"voter_constraints = '([^']*)'"),
    'lease_preferences': re.compile(r"lease_preferences = '([^']*)'"),
}

_CONSTRAINT_RE = re.compile(r'^([+-])([a-zA-Z0-9_-]+=.+?)(?::\s*(\d+))?$')


def parse_zone_config(text: str) -> ZoneConfig:
    """
    Parse zone configuration SQL into a ZoneConfig.

    Settings missing from the text keep their zero/empty defaults.

    Raises:
        ZoneConfigError: if a constraint list cannot be parsed
    """
    config = ZoneConfig()

    for attr, pattern in _INT_SETTINGS.items():
        match = pattern.search(text)
        if match:
            setattr(config, attr, int(match.group(1)))

    for attr, pattern in _CONSTRAINT_SETTINGS.items():
        match = pattern.search(text)
        if match:
            setattr(config, attr, parse_zone_constraints(match.group(1)))

    return config


def _strip_brackets(text: str, open_char: str, close_char: str) -> str:
    if len(text) >= 2 and text[0] == open_char and text[-1] == close_char:
        return text[1:-1]
    return text


def parse_zone_constraints(text: str) -> List[ZoneConfigConstraint]:
    """
    Parse a constraint list such as '{+region=us-east1: 3}' or '[[+region=a],[+region=b]]'.

    Raises:
        ZoneConfigError: on an empty or malformed entry
    """
    text = _strip_brackets(text, '[', ']')
    text = _strip_brackets(text, '{', '}')
    if not text:
        return []

    constraints = []
    for i, part in enumerate(text.split(',')):
        part = _strip_brackets(part.strip(), '[', ']').strip()
        if not part:
            raise ZoneConfigError(f"error processing constraints, part {i} in '{text}' is empty")

        match = _CONSTRAINT_RE.match(part)
        if not match:
            raise ZoneConfigError(f"invalid zone config constraint: {part}")

        constraints.append(ZoneConfigConstraint(
            value=match.group(2),
            type=ZoneConstraintType(match.group(1)),
            scope=int(match.group(3)) if match.group(3) else 0,
        ))

    return constraints
