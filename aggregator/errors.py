"""Error types raised by the stores and rendered by the API layer."""


class AggregatorError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, detail: str = ""):
        self.message = message
        self.detail = detail or message.lower()
        super().__init__(f"{message}: {self.detail}" if detail else message)


class NotFoundError(AggregatorError):
    """Raised when an account or transaction ID is not in its store."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource.capitalize()} not found", f"{resource} not found")


class BadRequestError(AggregatorError):
    """Raised when a required request parameter is missing or blank."""

    status_code = 400
