class SwapCycleError(Exception):
    """Base class for every failure raised by the swap cycle."""


class ConfigurationError(SwapCycleError):
    """Missing or invalid startup configuration (credentials, endpoints)."""


class EndpointExhaustedError(SwapCycleError):
    """The RPC endpoint stayed busy for every liveness probe."""


class RouteFetchError(SwapCycleError):
    """A single route request timed out, was cancelled or hit a transport failure."""


class RoutePermanentFailureError(SwapCycleError):
    """Every route request attempt failed or returned the failure sentinel."""


class MalformedRouteError(SwapCycleError):
    """The route service answered successfully but the payload is unusable."""


class InvalidRouteError(SwapCycleError):
    """A route quote carries no calldata to submit."""


class ApprovalFailedError(SwapCycleError):
    """The source token could not be approved for the router."""


class TransactionFailedError(SwapCycleError):
    """A submitted transaction was mined with a failed status."""

    def __init__(self, tx_hash: str, message: str = "Transaction reverted") -> None:
        super().__init__(f"{message}: {tx_hash}")
        self.tx_hash = tx_hash
