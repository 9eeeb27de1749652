"""
Foreign key analysis and parallel remediation for CockroachDB schemas.
"""

from schema_analyzer.analyzer import FKAnalyzer
from schema_analyzer.config import AnalyzerConfig, ConverterConfig, ExecutorConfig, load_settings
from schema_analyzer.converter import RegionConverter
from schema_analyzer.exceptions import (
    ConfigError,
    ConstraintError,
    ExecutionError,
    FilterError,
    IntrospectionError,
    RemediationError,
    SchemaAnalyzerError,
    ScriptParseError,
    ZoneConfigError,
)
from schema_analyzer.executor import BatchExecutor, BatchResult, ExecutionReport
from schema_analyzer.introspection import SchemaIntrospector
from schema_analyzer.models import (
    REGION_COLUMN,
    FKConstraint,
    FKFilter,
    FKFilterRule,
    FKOrphan,
    Rule,
    RuleDirection,
)
from schema_analyzer.remediation import delete_orphan_sql
from schema_analyzer.script_parser import ScriptParser
from schema_analyzer.tables import Table

__version__ = '0.1.0'
