from fastapi import APIRouter, HTTPException
import logging

from docbrief.api import services
from docbrief.models import (
    IntegrationState,
    NotificationSettings,
    Settings,
    UpdateNotificationsRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

INTEGRATIONS = ("notion", "slack", "github")


def current_settings() -> Settings:

    notifications = services.settings_registry.get("notifications") or {}
    integrations = services.settings_registry.get("integrations") or {}

    return Settings(
        notifications=NotificationSettings(**notifications),
        integrations={
            name: IntegrationState(**integrations.get(name, {}))
            for name in INTEGRATIONS
        },
    )


@router.get("", response_model=Settings)
def get_settings():
    return current_settings()


@router.put("/notifications", response_model=Settings)
def update_notifications(payload: UpdateNotificationsRequest):

    notifications = current_settings().notifications.model_dump()

    notifications.update(payload.model_dump(exclude_none=True))

    services.settings_registry.put("notifications", notifications)

    logger.info("notifications_updated", extra={"notifications": notifications})

    return current_settings()


def _set_integration(name: str, connected: bool) -> Settings:

    if name not in INTEGRATIONS:
        raise HTTPException(status_code=404, detail=f"Unknown integration: {name}")

    integrations = {
        key: state.model_dump()
        for key, state in current_settings().integrations.items()
    }

    integrations[name] = IntegrationState(
        connected=connected,
        status="connected" if connected else "disconnected",
    ).model_dump()

    services.settings_registry.put("integrations", integrations)

    logger.info(
        "integration_updated",
        extra={"integration": name, "connected": connected},
    )

    return current_settings()


@router.post("/integrations/{name}/connect", response_model=Settings)
def connect_integration(name: str):
    return _set_integration(name, True)


@router.post("/integrations/{name}/disconnect", response_model=Settings)
def disconnect_integration(name: str):
    return _set_integration(name, False)
