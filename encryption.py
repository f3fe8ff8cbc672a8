import logging
from typing import Optional, Union
from sqlalchemy.types import TypeDecorator, Text
from cryptography.fernet import Fernet, InvalidToken

import config

logger = logging.getLogger(__name__)


class EncryptedString(TypeDecorator):
    """
    Verschlüsselt Notiztexte VOR dem Speichern in der DB und entschlüsselt sie
    BEIM Laden. Ohne DB_ENCRYPTION_KEY wird Klartext gespeichert.
    """
    impl = Text  # Ciphertext ist länger als der Plaintext
    cache_ok = True

    def __init__(self, key: Optional[Union[str, bytes]] = None, **kwargs):
        super().__init__(**kwargs)
        key = key or config.DB_ENCRYPTION_KEY
        if not key:
            logger.warning("Kein DB_ENCRYPTION_KEY gesetzt! Verschlüsselung inaktiv.")
            self.fernet = None
        else:
            self.fernet = Fernet(key)

    def process_bind_param(self, value, dialect):
        # Python -> DB (Verschlüsseln)
        if value is not None and self.fernet:
            if isinstance(value, str):
                value = value.encode('utf-8')
            return self.fernet.encrypt(value).decode('utf-8')
        return value

    def process_result_value(self, value, dialect):
        # DB -> Python (Entschlüsseln)
        if value is not None and self.fernet:
            try:
                return self.fernet.decrypt(value.encode('utf-8')).decode('utf-8')
            except InvalidToken:
                # Altbestand im Klartext (vor Aktivierung des Keys)
                return value
        return value
