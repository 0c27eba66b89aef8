from typing import Mapping, Optional, Union


class DodoRoutePayloadJson:
    """
    Minimal typed view over the nested `data` object of a DODO route response.

    The raw mapping is kept as-is; only the fields we submit are modeled.
    """
    data: str
    to: str
    value: Union[str, int]
    gasLimit: Optional[Union[str, int]]


class DodoRouteResponseJson:
    """Envelope returned by `getdodoroute`: `{status, data: {...}}`."""
    status: int
    data: Mapping[str, object]
