"""Route dependencies"""

from fastapi import Request

from ..core.container import Services


def get_services(request: Request) -> Services:
    """Services constructed at application startup"""
    return request.app.state.services
