"""
Contact form handling. Messages are validated and logged; nothing is mailed.
"""
import logging

from lexpix.schemas import ContactMessage

logger = logging.getLogger(__name__)


async def submit_contact_message(message: ContactMessage) -> ContactMessage:
    logger.info(f"Contact message from {message.name} <{message.email}>: {message.message}")
    return message
