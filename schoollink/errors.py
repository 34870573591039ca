class ServiceError(Exception):
    """Base error raised by the service layer; the message is safe to show to users."""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class PermissionDenied(ServiceError):
    status_code = 403


class DuplicateParentError(ServiceError):
    """Raised when a parent account with the given email already exists."""

    status_code = 409

    def __init__(self, parent):
        super().__init__(f'A parent with email "{parent.email}" already exists')
        self.parent = parent

    def to_dict(self):
        data = super().to_dict()
        data['existing_parent'] = {'id': self.parent.id, 'name': self.parent.display_name,
                                   'email': self.parent.email}
        return data
