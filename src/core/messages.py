"""
Message templates
=================
Plain key -> template mapping used for response messages and log lines.
A service may receive its own mapping; keys it does not define fall back
to these defaults.
"""

import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES: dict[str, str] = {
    # Response messages
    "CustomerInfoInvalid": "CustomerInfo is not valid!",
    "CustomerNotFound": "Could not find customer with Id of {0}",
    "UnexpectedServerError": "Something unexpected went wrong during the request!",

    # Log lines
    "LoggingGetCustomers": "Getting all customers",
    "LoggingGetCustomer": "Getting customer {0}",
    "LoggingAddingCustomer": "Adding customer {0}",
    "LoggingAddedCustomer": "Added customer {0}",
    "LoggingUpdatingCustomer": "Updating customer {0}",
    "LoggingUpdatedCustomer": "Updated customer {0}",
    "LoggingDeletingCustomer": "Deleting customer {0}",
    "LoggingDeletedCustomer": "Deleted customer {0}",
    "LoggingPhoneNumberFormat": "Phone number '{0}' does not look like a phone number",
}


class MessageCatalog:
    """Formats message templates by key"""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self._templates = dict(DEFAULT_MESSAGES)
        if overrides:
            self._templates.update(overrides)

    def get(self, key: str, *args) -> str:
        """
        Returns the formatted template.

        Unknown keys come back as the key itself, so a missing entry shows
        up in the output instead of failing the request. Templates take
        positional placeholders only; an override that does not fit its
        arguments falls back to the default template, then to the raw text.
        """
        template = self._templates.get(key, key)
        try:
            return template.format(*args)
        except (IndexError, KeyError, ValueError) as e:
            logger.warning(f"⚠️ Message template {key!r} does not fit its arguments: {e!r}")

        default = DEFAULT_MESSAGES.get(key)
        if default is not None and default != template:
            return default.format(*args)
        return template
