from .errors import error_response, journey_error_response

__all__ = ["error_response", "journey_error_response"]
