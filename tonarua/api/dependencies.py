"""FastAPI dependency injection helpers."""

from fastapi import Request

from tonarua.domain.controller import RideLifecycleController


def get_controller(request: Request) -> RideLifecycleController:
    """Return the session's lifecycle controller, created in the app lifespan."""
    return request.app.state.controller
