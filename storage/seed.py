import logging

import config
from auth_utils import hash_password
from schemas import Role
from storage.base import Storage

logger = logging.getLogger(__name__)

SAMPLE_TASKS = [
    {
        "title": "Clean reception area and lobby",
        "description": "Clean and organize the reception area and main lobby",
    },
    {
        "title": "Stock coffee supplies",
        "description": "Restock coffee, tea, and related supplies in the kitchen",
    },
    {
        "title": "Update inventory spreadsheet",
        "description": "Update the daily inventory tracking spreadsheet",
    },
]

SAMPLE_MESSAGE = {
    "title": "Shift Completion Reminder",
    "content": "Remember to complete all tasks before end of shift!",
    "active": True,
}


def seed_storage(storage: Storage) -> bool:
    """Legt Admin, Beispiel-Mitarbeiter, Beispielaufgaben und eine Nachricht an.

    Nur für einen leeren Speicher; liefert False, wenn bereits Benutzer existieren.
    """
    if storage.get_all_users():
        return False

    storage.create_user({
        "username": config.ADMIN_USERNAME,
        "hashed_password": hash_password(config.ADMIN_PASSWORD),
        "email": config.ADMIN_EMAIL,
        "role": Role.ADMIN,
    })
    storage.create_user({
        "username": config.EMPLOYEE_USERNAME,
        "hashed_password": hash_password(config.EMPLOYEE_PASSWORD),
        "email": config.EMPLOYEE_EMAIL,
        "role": Role.EMPLOYEE,
    })
    for task in SAMPLE_TASKS:
        storage.create_task(task)
    storage.create_important_message(SAMPLE_MESSAGE)

    logger.info("Startdaten angelegt: 2 Benutzer, %d Aufgaben, 1 Nachricht", len(SAMPLE_TASKS))
    return True
