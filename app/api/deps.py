"""
Shared FastAPI dependencies.
"""

from fastapi import Request

from domains.hub import IntegrationHub


def get_hub(request: Request) -> IntegrationHub:
    """The hub owned by the running application."""
    return request.app.state.hub
