"""Error taxonomy shared by the process, correlation and gateway layers.

Every error carries the HTTP status the gateway answers with; the message is
passed to the caller unchanged.
"""


class GatewayError(Exception):
    status_code = 500


class SpawnFailed(GatewayError):
    pass


class SessionNotFound(GatewayError):
    status_code = 404


class ExchangeTimeout(GatewayError):
    pass


class WriteFailed(GatewayError):
    pass


class ProcessExited(GatewayError):
    pass


class BufferOverflow(GatewayError):
    pass


class InvalidRequest(GatewayError):
    status_code = 400
