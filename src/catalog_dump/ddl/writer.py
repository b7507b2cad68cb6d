"""Statement writer: the append-only text sink the renderers write to.

Every statement is preceded by a spacing prefix.  The standard prefix
leaves two blank lines between consecutive statements; compact statements
(used for composite type metadata) are preceded by a single blank line and
are left unterminated until the next write.

Usage:
    writer = StatementWriter()
    writer.write_statement("CREATE SCHEMA foo;")
    writer.close()
    writer.getvalue()
    # '\\n\\nCREATE SCHEMA foo;\\n'
"""

import io
from typing import Protocol

NO_BLANK_LINE = ""
SINGLE_BLANK_LINE = "\n"
DOUBLE_BLANK_LINE = "\n\n"


class TextSink(Protocol):
    """Anything with a ``write(str)`` method (files, ``io.StringIO``, ...)."""

    def write(self, text: str, /) -> object:
        ...


class StatementWriter:
    """Appends SQL statements to a sink using the blank-line conventions.

    Args:
        sink: Destination; defaults to an in-memory ``io.StringIO``.
    """

    def __init__(self, sink: TextSink | None = None):
        self._sink = sink if sink is not None else io.StringIO()
        self._line_open = False

    def write_statement(self, statement: str, spacing: str = DOUBLE_BLANK_LINE) -> None:
        """Write a line-terminated statement preceded by *spacing*."""
        self._sink.write(f"{spacing}{statement}\n")
        self._line_open = False

    def write_open_statement(self, statement: str, spacing: str = DOUBLE_BLANK_LINE) -> None:
        """Write *statement* preceded by *spacing*, leaving its line open.

        A standard statement written next is then separated from it by a
        single blank line.
        """
        self._sink.write(f"{spacing}{statement}")
        self._line_open = True

    def write_compact_statement(self, statement: str) -> None:
        """Write a statement preceded by exactly one blank line.

        The statement is left unterminated; whatever is written next
        supplies the line break.
        """
        spacing = DOUBLE_BLANK_LINE if self._line_open else SINGLE_BLANK_LINE
        self._sink.write(f"{spacing}{statement}")
        self._line_open = True

    def close(self) -> None:
        """Terminate a trailing open or compact statement, if any."""
        if self._line_open:
            self._sink.write("\n")
            self._line_open = False

    def getvalue(self) -> str:
        """Return everything written so far (in-memory sinks only)."""
        if not isinstance(self._sink, io.StringIO):
            raise TypeError("getvalue() is only available for in-memory sinks")
        return self._sink.getvalue()
