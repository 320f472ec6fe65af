from rest_framework import serializers


class DomainError(serializers.ValidationError):
    """Business rule violation raised by service functions.

    Views answer these with 400 ``{'error': message}``; if one escapes a view,
    DRF still renders it as a 400.
    """

    def __init__(self, message, field=None):
        self.message = message
        self.field = field
        super().__init__(message)

    def as_response_data(self):
        data = {'error': self.message}
        if self.field:
            data['field'] = self.field
        return data
