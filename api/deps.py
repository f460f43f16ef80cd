"""FastAPI dependencies: components built once by create_app and kept on app.state."""

from fastapi import Request

from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings
from subscribers.registry import ProductRegistry
from subscribers.store import SubscriberStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ProductRegistry:
    return request.app.state.registry


def get_store(request: Request) -> SubscriberStore:
    return request.app.state.store


def get_admin(request: Request) -> SubscriberAdmin:
    return request.app.state.admin
