"""
Domain event logging.

Services call ``log_domain_event('patient_created', entity_type='Patient', ...)``
instead of composing log lines by hand, so every business event has the
same shape and goes through the same redaction.
"""
import logging
from typing import Any, Dict, Optional

from .logging import sanitize_dict

logger = logging.getLogger(__name__)

_WARNING_RESULTS = {'warning', 'partial', 'blocked'}
_ERROR_RESULTS = {'failure', 'error'}


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    result: str = 'success',
    **extra_fields: Any,
) -> Dict[str, Any]:
    """
    Log a business event and return the structured payload that was logged.

    The level follows ``result``: failure/error -> ERROR,
    warning/partial/blocked -> WARNING, anything else -> INFO.
    """
    event_data = {'event': event_name, 'result': result}
    if entity_type:
        event_data['entity_type'] = entity_type
    if entity_id is not None:
        event_data['entity_id'] = str(entity_id)
    event_data.update(sanitize_dict(extra_fields))

    if result in _ERROR_RESULTS:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in _WARNING_RESULTS:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)

    return event_data
