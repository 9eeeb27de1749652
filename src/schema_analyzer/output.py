"""
Script output.

Generated scripts are lists of lines where comments and markers are kept
verbatim and every other line is a statement needing a ";" terminator.
"""

import logging
import os
import re
from typing import Iterable, List

logger = logging.getLogger(__name__)

DEFAULT_FILE = 'default.sql'

_FILE_START_RE = re.compile(r'^-- FILE START (.+)$')
_FILE_END = '-- FILE END'


def render_line(line: str) -> str:
    if not line or line.startswith('--'):
        return line
    return line if line.rstrip().endswith(';') else f"{line};"


def render_script(lines: Iterable[str]) -> str:
    """Render script lines as text, dropping FILE markers."""
    rendered = [
        render_line(line) for line in lines
        if not (_FILE_START_RE.match(line) or line == _FILE_END)
    ]
    return '\n'.join(rendered) + '\n' if rendered else ''


def write_script_files(lines: Iterable[str], directory: str) -> List[str]:
    """
    Write script lines into files, split on FILE START / FILE END markers.

    Lines outside any FILE section go to default.sql. Each named section is
    written to its own file in the directory.

    Args:
        lines: Script lines
        directory: Output directory (created if missing)

    Returns:
        Paths of the files written, default.sql last
    """
    os.makedirs(directory, exist_ok=True)

    sections = {}
    order = []
    active = DEFAULT_FILE
    for line in lines:
        match = _FILE_START_RE.match(line)
        if match:
            active = os.path.basename(match.group(1).strip())
            if active not in sections:
                sections[active] = []
                order.append(active)
            continue
        if line == _FILE_END:
            active = DEFAULT_FILE
            continue
        if active not in sections:
            sections[active] = []
            order.append(active)
        sections[active].append(render_line(line))

    written = []
    for name in [n for n in order if n != DEFAULT_FILE] + [DEFAULT_FILE]:
        path = os.path.join(directory, name)
        with open(path, 'w', encoding='utf-8') as f:
            for line in sections.get(name, []):
                f.write(f"{line}\n")
        logger.info(f"Wrote {len(sections.get(name, []))} line(s) to {path}")
        written.append(path)

    return written
