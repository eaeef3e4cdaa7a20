"""Device registration API endpoints for notification polling clients."""
import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_device_registry
from ..errors import ApiError, NotFoundError, RegistryError
from ..schemas.device import DeviceRegister, DeviceRegistration, DeviceResponse
from ..services.device_registry import DeviceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/usuarios", tags=["devices"])


@router.post("/registrarTokenAlt")
async def register_device(
    request: DeviceRegister,
    registry: DeviceRegistry = Depends(get_device_registry),
):
    """Register a device token for a user.

    If the token already exists every field is overwritten. Apps should call
    this on every launch so the token and owner stay current.
    """
    try:
        result = await registry.register_device(**request.model_dump())
    except RegistryError as e:
        logger.error(f"Error in register device route: {e}")
        raise ApiError("Error registering device", e)

    return {
        "status": "success",
        "message": "Device registered successfully",
        "data": DeviceRegistration(**result),
    }


@router.get("/{user_id}/dispositivos")
async def get_user_devices(
    user_id: str,
    registry: DeviceRegistry = Depends(get_device_registry),
):
    """Active devices of a user, most recently seen first."""
    try:
        devices = await registry.get_user_devices(user_id)
    except RegistryError as e:
        logger.error(f"Error in get user devices route: {e}")
        raise ApiError("Error fetching user devices", e)

    return {
        "status": "success",
        "message": "User devices retrieved",
        "data": [DeviceResponse.model_validate(d) for d in devices],
        "count": len(devices),
    }


@router.delete("/dispositivos/{device_token}")
async def deactivate_device(
    device_token: str,
    registry: DeviceRegistry = Depends(get_device_registry),
):
    """Unregister a device.

    This doesn't delete the record but marks it as inactive.
    """
    try:
        await registry.deactivate_device(device_token)
    except NotFoundError as e:
        raise ApiError("Device not found", e, status_code=404)
    except RegistryError as e:
        logger.error(f"Error in deactivate device route: {e}")
        raise ApiError("Error deactivating device", e)

    return {
        "status": "success",
        "message": "Device deactivated successfully",
    }
