"""Error types answered as ``{"error": message}`` JSON bodies."""


class PortalError(Exception):
    status_code = 500
    message = 'Something went wrong'

    def __init__(self, message=None, fields=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.fields = fields

    def to_dict(self):
        body = {'error': self.message}
        if self.fields:
            body['fields'] = self.fields
        return body


class ValidationFailed(PortalError):
    status_code = 400
    message = 'Invalid data'

