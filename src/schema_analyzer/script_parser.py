"""
SQL script parser.

Splits a script into batches for the parallel executor:

- a statement outside a block becomes its own single-statement batch
- statements between "-- BEGIN BLOCK" and "-- END BLOCK" form one batch that
  runs sequentially on one connection
- blank lines and "--" comment lines are dropped
- statements end at a line ending in ";" unless a $$ dollar-quoted body is open

Dollar-quote tracking is a line heuristic: a line with an odd number of "$$"
markers opens or closes a body. It does not lex SQL strings.
"""

import io
import logging
from pathlib import Path
from typing import Iterable, List, Union

from schema_analyzer.exceptions import ScriptParseError

BLOCK_BEGIN = '-- BEGIN BLOCK'
BLOCK_END = '-- END BLOCK'
COMMENT_PREFIX = '--'
DOLLAR_QUOTE = '$$'
TERMINATOR = ';'

Batch = List[str]


class ScriptParser:
    """
    Line-oriented parser turning SQL script text into ordered batches.

    Example:
        >>> ScriptParser().parse("SELECT 1;\\n-- BEGIN BLOCK\\nA;\\nB;\\n-- END BLOCK\\n")
        [['SELECT 1;'], ['A;', 'B;']]
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def parse_file(self, path: Union[str, Path]) -> List[Batch]:
        """Parse a UTF-8 script file."""
        with open(path, 'r', encoding='utf-8') as f:
            batches = self.parse_lines(f)
        self.logger.debug(f"Parsed {len(batches)} batch(es) from {path}")
        return batches

    def parse(self, script: str) -> List[Batch]:
        """Parse script text, splitting lines the same way parse_file does."""
        return self.parse_lines(io.StringIO(script, newline=None))

    def parse_lines(self, lines: Iterable[str]) -> List[Batch]:
        """
        Parse script lines into batches.

        Raises:
            ScriptParseError: on nested or unmatched block markers, or when the
                              input ends inside a block or a dollar-quoted body
        """
        batches: List[Batch] = []
        current_block: Batch = []
        in_block = False
        in_dollar_quote = False
        statement_lines: List[str] = []
        block_start = 0
        quote_start = 0

        def flush_statement():
            statement = '\n'.join(statement_lines).strip()
            statement_lines.clear()
            if not statement:
                return
            if in_block:
                current_block.append(statement)
            else:
                batches.append([statement])

        line_number = 0
        for line_number, raw_line in enumerate(lines, 1):
            line = raw_line.rstrip('\r\n')
            trimmed = line.strip()

            if trimmed == BLOCK_BEGIN:
                if in_block:
                    raise ScriptParseError(f"nested {BLOCK_BEGIN} not allowed", line_number)
                # unterminated text before a block still runs on its own
                flush_statement()
                in_block = True
                block_start = line_number
                current_block = []
                continue

            if trimmed == BLOCK_END:
                if not in_block:
                    raise ScriptParseError(f"{BLOCK_END} without {BLOCK_BEGIN}", line_number)
                flush_statement()
                in_block = False
                if current_block:
                    batches.append(current_block)
                current_block = []
                continue

            if not trimmed or trimmed.startswith(COMMENT_PREFIX):
                continue

            # Keep function body indentation; everything else is normalized
            statement_lines.append(line.rstrip() if in_dollar_quote else trimmed)

            if line.count(DOLLAR_QUOTE) % 2 != 0:
                in_dollar_quote = not in_dollar_quote
                quote_start = line_number

            if not in_dollar_quote and trimmed.endswith(TERMINATOR):
                flush_statement()

        if in_block:
            raise ScriptParseError(f"unclosed {BLOCK_BEGIN} at end of file", block_start)
        if in_dollar_quote:
            raise ScriptParseError(f"unclosed {DOLLAR_QUOTE} dollar-quote block at end of file", quote_start)

        # a final statement without a terminator
        flush_statement()
        return batches
