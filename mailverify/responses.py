"""
Response Module

Builds the public API objects returned by the HTTP layer.
"""

import secrets
import string
import time
from typing import Dict, Any

from .models import BatchResult, ValidationResult

_ALPHABET = string.ascii_lowercase + string.digits


def _base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_ALPHABET[remainder])
        if number == 0:
            return ''.join(reversed(digits))


def generate_id(prefix: str) -> str:
    """Generate an id like ``req_lq2x9k3f8a7b6c5d4``: prefix, base36 millis, random suffix."""
    random_part = ''.join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{_base36(int(time.time() * 1000))}{random_part}"


def _base_object(object_type: str, livemode: bool) -> Dict[str, Any]:
    return {
        'object': object_type,
        'id': generate_id('email' if object_type == 'email' else 'batch'),
        'created': int(time.time()),
        'livemode': livemode,
    }


def to_email_object(result: ValidationResult, livemode: bool = False) -> Dict[str, Any]:
    body = _base_object('email', livemode)
    body.update({
        'email': result.email,
        'valid': result.valid,
        'deliverable': result.deliverable.value,
        'domain': result.domain,
        'reason': result.reason,
        'checks': result.checks.to_dict(),
    })
    return body


def to_batch_result_object(result: BatchResult, livemode: bool = False) -> Dict[str, Any]:
    body = _base_object('batch_result', livemode)
    body.update({
        'total_count': result.total_count,
        'valid_count': result.valid_count,
        'invalid_count': result.invalid_count,
        'file_name': result.file_info.name,
        'file_size': result.file_info.size,
        'processed_at': result.processing_stats.completed_at,
        'results': [to_email_object(r, livemode) for r in result.results],
        'metadata': {
            'file_type': result.file_info.type,
            'processing_time_ms': result.processing_stats.elapsed_ms,
            'truncated': result.processing_stats.truncated,
        },
    })
    if result.download_id:
        body['download_id'] = result.download_id
    return body
