"""Exception types shared across the package.

Every error carries a message and the CLI exit code it maps to.
"""


class FactorRiskError(Exception):
    """Base exception."""
    exit_code = 1

    def __init__(self, message: str, exit_code: int = None):
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        super().__init__(message)


class InvalidArgument(FactorRiskError, ValueError):
    """Malformed model object or unsupported option token."""
    exit_code = 2


class UpstreamComputationFailure(FactorRiskError):
    """The risk computation itself failed (degenerate covariance, bad weights...)."""
    exit_code = 3


class RenderingFailure(FactorRiskError):
    """The chart renderer failed."""
    exit_code = 4
