"""
Failures that abort the handling of a single webhook delivery.

Nothing here is retried locally; GitHub's redelivery is the only retry.
"""


class CourtError(Exception):
    """
    Base class for every failure surfaced as an event failure.
    """
    pass


class SigningError(CourtError):
    """
    Raised when the app private key is missing, unparseable or cannot sign.
    """
    pass


class TokenExchangeError(CourtError):
    """
    Raised when GitHub refuses to hand out an installation token.

    Also covers the installation lookup that precedes the exchange, and
    2xx answers from either endpoint whose body cannot be used.
    """

    def __init__(self, status_code: int, body: str, message: str = "Bad status code returned for access token url"):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message}- {status_code} {body}")


class LabelRegistryError(CourtError):
    """
    Raised when a court label can be neither fetched nor created.
    """
    pass


class ApplyError(CourtError):
    """
    Raised when the label mutation on a pull request fails.
    """
    pass


class PayloadDecodeError(CourtError):
    """
    Raised when a webhook body is not a JSON object.
    """
    pass
