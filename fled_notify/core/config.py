# fled_notify/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "dev"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    FIREBASE_CREDENTIALS_PATH: str = "service-account.json"
    FIREBASE_PROJECT_ID: str | None = None

    STUDENTS_COLLECTION: str = "students"
    GUARDIANS_COLLECTION: str = "parents"
    PRINCIPALS_COLLECTION: str = "users"
    DEVICES_COLLECTION_GROUP: str = "devices"

    # FCM rejects multicast calls above 500 tokens; stay below it
    PUSH_BATCH_SIZE: int = 450
    PUSH_BATCH_CEILING: int = 500
    PUSH_RETRY_ATTEMPTS: int = 2
    PUSH_RETRY_WAIT_SECONDS: float = 0.4
    PUSH_SEND_TIMEOUT_SECONDS: float | None = None

    AUTH_CHECK_REVOKED: bool = False
    NOTIFY_REQUIRED_ROLE: str | None = None

    MESSAGE_BODY_LIMIT: int = 150
    NOTIFY_MESSAGE_BODY_LIMIT: int = 200

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
