"""Error and warning types raised by the schema clean engine.

Fatal conditions are exceptions deriving from DmopsError and abort the whole
operation. Steps that cannot run under the current privileges are reported
with UnsupportedOperationWarning, which is logged and collected but never
raised.
"""


class DmopsError(RuntimeError):
    """Base class for all dmops errors."""


class SqlExecutionError(DmopsError):
    """Raised by a session when a statement or query fails on the server."""


class ConfigurationError(DmopsError):
    """Raised when required configuration is missing or invalid."""


class ProtectedSchemaError(DmopsError):
    """Raised when an operation targets a system-owned schema."""

    def __init__(self, schema_name: str):
        super().__init__(
            f'Clean not supported for system schema "{schema_name}". '
            "It must not be changed in any way except by engine-supplied scripts."
        )
        self.schema_name = schema_name


class CapabilityProbeError(DmopsError):
    """Raised when an introspection query itself fails."""


class UnsupportedEngineError(DmopsError):
    """Raised when the engine version is older than the supported minimum."""


class DropStatementError(DmopsError):
    """Raised when a DDL statement fails during teardown."""

    def __init__(self, statement: str, cause: Exception):
        super().__init__(f"Failed to execute `{statement}`: {cause}")
        self.statement = statement


class ConvergenceWaitInterrupted(DmopsError):
    """Raised when a convergence wait is cancelled from outside."""


class ConvergenceTimeoutError(DmopsError):
    """Raised when a convergence wait exceeds its attempt ceiling."""


class UnsupportedOperationWarning(UserWarning):
    """A privilege- or scope-gated step was skipped."""
