from .observer import ChangeType, NotificationEvent, ProtocolCallbacks, CallbackNotifier

__all__ = ["ChangeType", "NotificationEvent", "ProtocolCallbacks", "CallbackNotifier"]
