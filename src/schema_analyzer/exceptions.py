"""
Custom exceptions for the schema analyzer.
"""


class SchemaAnalyzerError(Exception):
    """Base exception for all schema analyzer errors."""
    pass


class ConfigError(SchemaAnalyzerError):
    """Raised for configuration errors."""
    pass


class ConstraintError(SchemaAnalyzerError, ValueError):
    """Raised when a foreign key row cannot be turned into a constraint."""
    pass


class FilterError(SchemaAnalyzerError, ValueError):
    """Raised when a foreign key filter rule cannot be parsed."""
    pass


class IntrospectionError(SchemaAnalyzerError):
    """Raised when a schema introspection query fails."""

    def __init__(self, query_name: str, error: Exception):
        self.query_name = query_name
        self.error = error
        super().__init__(f"{query_name} query failed: {error}")


class RemediationError(SchemaAnalyzerError):
    """Raised when remediation SQL cannot be generated for an orphan."""
    pass


class ZoneConfigError(SchemaAnalyzerError):
    """Raised when zone configuration text cannot be parsed."""
    pass


class ScriptParseError(SchemaAnalyzerError):
    """Raised when a SQL script has unbalanced blocks or dollar quotes."""

    def __init__(self, message: str, line_number: int = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)


class ExecutionError(SchemaAnalyzerError):
    """Raised when a statement inside a batch fails."""

    def __init__(self, statement_index: int, statement: str, error: Exception):
        self.statement_index = statement_index
        self.statement = statement
        self.error = error
        super().__init__(f"failed on statement {statement_index + 1} '{statement}': {error}")
