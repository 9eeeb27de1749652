"""
Parallel batch execution.

A fixed pool of workers drains one shared queue of batches. Each worker
checks out its own pooled connection per batch, runs the optional pre-statement
and then every statement of the batch strictly in order. A failing statement
ends its batch; other batches and workers keep going. There is no ordering
between batches and no automatic retry.

No statement timeout is applied: a hung statement holds its worker until the
database responds.
"""

import logging
import queue
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from sqlalchemy.engine import Connection, Engine

from schema_analyzer.config import ExecutorConfig
from schema_analyzer.exceptions import ExecutionError
from schema_analyzer.remediation import quote_identifier
from schema_analyzer.script_parser import ScriptParser
from schema_analyzer.session import create_db_engine


@dataclass
class BatchResult:
    """Outcome of one batch as reported by the worker that ran it."""

    index: int
    worker_id: int
    statements: List[str]
    statements_executed: int = 0
    executions: int = 0
    success: bool = False
    error: Optional[str] = None
    failed_statement: Optional[int] = None


@dataclass
class ExecutionReport:
    results: List[BatchResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BatchResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[BatchResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return f"{len(self.results)} batch(es): {len(self.succeeded)} succeeded, {len(self.failed)} failed"


class BatchExecutor:
    """
    Execute parsed batches concurrently against a connection pool.

    Example:
        >>> executor = BatchExecutor.from_config(ExecutorConfig(db_url=url, concurrency=8))
        >>> report = executor.execute_file('orphans.sql')
        >>> report.ok
        True
    """

    def __init__(self, engine: Engine, config: ExecutorConfig):
        # each statement is its own implicit transaction
        self.engine = engine.execution_options(isolation_level='AUTOCOMMIT')
        self.config = config
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ExecutorConfig) -> 'BatchExecutor':
        # Pool capacity matches the worker count so every worker can hold a connection
        engine = create_db_engine(
            config.db_url,
            pool_size=config.concurrency,
            max_overflow=0,
            pool_timeout=config.pool_timeout,
        )
        return cls(engine, config)

    def execute_file(self, path: Union[str, Path]) -> ExecutionReport:
        """
        Parse a script file and execute its batches.

        Raises:
            ScriptParseError: if the script is malformed (nothing is executed)
        """
        batches = ScriptParser().parse_file(path)
        self.logger.info(f"Loaded {len(batches)} batch(es) from {path}")
        return self.execute(batches)

    def execute(self, batches: Sequence[Sequence[str]]) -> ExecutionReport:
        """
        Run all batches across config.concurrency workers and wait for them.

        Every enqueued batch is attempted; failures are logged and recorded in
        the report rather than raised.
        """
        work = queue.Queue()
        for index, batch in enumerate(batches):
            work.put((index, list(batch)))

        results: List[BatchResult] = []
        with ThreadPoolExecutor(max_workers=self.config.concurrency) as pool:
            futures = [
                pool.submit(self._worker, worker_id, work)
                for worker_id in range(self.config.concurrency)
            ]
            for future in as_completed(futures):
                results.extend(future.result())

        results.sort(key=lambda r: r.index)
        report = ExecutionReport(results=results)
        self.logger.info(report.summary())
        return report

    def _worker(self, worker_id: int, work: queue.Queue) -> List[BatchResult]:
        """Pull batches until the queue is drained."""
        results = []
        while True:
            try:
                index, batch = work.get_nowait()
            except queue.Empty:
                return results

            self.logger.info(f"Executing [{worker_id}]: " + '\n'.join(batch))
            result = BatchResult(index=index, worker_id=worker_id, statements=batch)
            try:
                self._execute_batch(batch, result)
                result.success = True
            except ExecutionError as e:
                result.error = str(e)
                result.failed_statement = e.statement_index
                self.logger.error(f"Error [{worker_id}]: {e}")
            except Exception as e:
                # connection checkout or pre-statement failure
                result.error = str(e)
                self.logger.error(f"Error [{worker_id}]: {e}")
            results.append(result)

    def _execute_batch(self, statements: List[str], result: BatchResult):
        with self.engine.connect() as conn:
            if self.config.database:
                try:
                    conn.exec_driver_sql(f"SET database = {quote_identifier(self.config.database)}")
                except Exception as e:
                    raise RuntimeError(f"error selecting database {self.config.database}: {e}") from e

            if self.config.pre_sql:
                try:
                    conn.exec_driver_sql(self.config.pre_sql)
                except Exception as e:
                    raise RuntimeError(f"error executing pre-sql [{self.config.pre_sql}]: {e}") from e

            for i, statement in enumerate(statements):
                self._execute_statement(conn, i, statement, result)
                result.statements_executed += 1

    def _execute_statement(self, conn: Connection, index: int, statement: str, result: BatchResult):
        """Run one statement, repeating while it still affects rows in until_zero_rows mode."""
        iterations = 0
        while True:
            try:
                rowcount = conn.exec_driver_sql(statement).rowcount
            except Exception as e:
                raise ExecutionError(index, statement, e) from e
            iterations += 1
            result.executions += 1

            if not self.config.until_zero_rows or rowcount <= 0:
                return
            self.logger.debug(f"{rowcount} row(s) affected by statement {index + 1}, repeating")

            if self.config.max_iterations is not None and iterations >= self.config.max_iterations:
                raise ExecutionError(index, statement, RuntimeError(
                    f"still affecting rows after {iterations} execution(s)"))
