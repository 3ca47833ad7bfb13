from .auth import AuthClient
from .devices import DevicesClient

__all__ = ["AuthClient", "DevicesClient"]
