from fastapi_mail import ConnectionConfig, FastMail
from pathlib import Path

from ..core.config import Settings


BASE_DIR = Path(__file__).resolve().parent
MESSAGE_TEMPLATE_PATH = Path(BASE_DIR, 'templates')


def build_mailer(settings: Settings) -> FastMail:
    mail_config = ConnectionConfig(
        MAIL_USERNAME = settings.MAIL_USERNAME,
        MAIL_PASSWORD = settings.MAIL_PASSWORD,
        MAIL_FROM = settings.MAIL_FROM,
        MAIL_PORT = settings.MAIL_PORT,
        MAIL_SERVER = settings.MAIL_SERVER,
        MAIL_FROM_NAME = settings.MAIL_FROM_NAME,
        MAIL_STARTTLS = settings.MAIL_STARTTLS,
        MAIL_SSL_TLS = settings.MAIL_SSL_TLS,
        USE_CREDENTIALS = settings.USE_CREDENTIALS,
        VALIDATE_CERTS = settings.VALIDATE_CERTS,
        TEMPLATE_FOLDER=MESSAGE_TEMPLATE_PATH,
    )
    return FastMail(mail_config)
