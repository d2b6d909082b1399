# PushRelay Functions
# Firebase Cloud Functions entry point

from src.api import fcm_notify
