from flask import jsonify


class ApiError(Exception):
    """Client-facing error carrying an HTTP status code."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_response(message, status_code):
    return jsonify({'success': False, 'error': {'message': message}}), status_code
