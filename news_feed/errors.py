##########################################################################################
#
# Script name: errors.py
#
# Description: Failure kinds surfaced by the aggregator to the HTTP boundary.
#
##########################################################################################


# ****************************************************************************************
# Exceptions
# ****************************************************************************************

class Error(Exception):
    '''
    Base class for aggregation failures.
    '''
    tag = 'error'

    def __init__(self, detail: str, provider: str = ''):
        self.detail = detail
        self.provider = provider
        super().__init__(detail)

    def to_dict(self) -> dict:
        return {'error': self.tag, 'provider': self.provider, 'details': self.detail}


class UpstreamError(Error):
    '''
    The upstream was reachable but answered with a non-success status.
    '''
    tag = 'upstream_error'

    def __init__(self, status: int, detail: str, provider: str = ''):
        self.status = status
        super().__init__(detail, provider)

    def __str__(self) -> str:
        return f'{self.provider or "upstream"} returned HTTP {self.status}: {self.detail}'

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload['status'] = self.status
        return payload


class InternalError(Error):
    '''
    Transport or parse failure, or any unexpected exception while aggregating.
    '''
    tag = 'server_error'
