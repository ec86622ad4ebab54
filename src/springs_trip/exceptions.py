"""
Exceptions raised by the springs trip engine
"""


class SpringsTripError(Exception):
    """Base exception for the trip engine"""
    pass


class ConfigurationError(SpringsTripError):
    """Raised when a provider credential or endpoint is not configured"""
    pass


class ProviderError(SpringsTripError):
    """Raised when an external provider call fails"""
    pass


class ProviderTimeout(ProviderError):
    """Raised when an external provider does not answer in time"""
    pass


class MalformedResponseError(ProviderError):
    """Raised when a provider answers with a payload we cannot use"""
    pass


class PreconditionError(SpringsTripError):
    """Raised when an operation is requested on a trip that cannot support it"""
    pass


class TripLimitError(PreconditionError):
    """Raised when a trip would exceed the waypoint limit"""
    pass


class UnknownWaypointError(SpringsTripError):
    """Raised when a waypoint id is not in the loaded catalog"""
    pass


class StorageError(SpringsTripError):
    """Raised when the durable trip slot cannot be written"""
    pass
