"""
Utility functions for the application.
"""
from .route_decorators import handle_route_errors, success_response

__all__ = ['handle_route_errors', 'success_response']
