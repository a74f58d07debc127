"""Firebase Cloud Messaging gateway"""

import logging
from dataclasses import dataclass, field

import firebase_admin
from firebase_admin import credentials, messaging

from ...config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

# Errors about the token itself; its registration should be dropped.
# INVALID_ARGUMENT is not here: FCM also returns it when the message is malformed.
PERMANENT_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
)


@dataclass
class PushBatchResult:
    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: list[str] = field(default_factory=list)


def get_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK (only once)"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
        if FIREBASE_CREDENTIALS_PATH:
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            logger.info("Firebase Admin initialized with service account")
        else:
            cred = credentials.ApplicationDefault()
            logger.info("Firebase Admin initialized with default credentials")
        return firebase_admin.initialize_app(cred, options)


class FirebasePushGateway:
    """Sends the same data-only message to a batch of tokens through FCM"""

    def send_multicast(self, tokens: list[str], data: dict[str, str]) -> PushBatchResult:
        app = get_firebase_app()
        messages = [messaging.Message(data=data, token=token) for token in tokens]
        response = messaging.send_each(messages, app=app)

        result = PushBatchResult(
            success_count=response.success_count, failure_count=response.failure_count
        )
        for token, send_response in zip(tokens, response.responses):
            if send_response.success:
                continue
            if isinstance(send_response.exception, PERMANENT_TOKEN_ERRORS):
                result.invalid_tokens.append(token)
            else:
                logger.warning(f"⚠️ Push delivery failed: {send_response.exception}")
        return result
