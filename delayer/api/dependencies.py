"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from delayer.client import QueueClient
from delayer.store.base import Store


def get_client(request: Request) -> QueueClient:
    """Get the queue client bound to the application."""
    return request.app.state.client


def get_store(request: Request) -> Store:
    """Get the store bound to the application."""
    return request.app.state.store


Client = Annotated[QueueClient, Depends(get_client)]
StoreDep = Annotated[Store, Depends(get_store)]
