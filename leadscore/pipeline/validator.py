"""
Record Validator — turns one raw CSV row into a LeadRecord or a RowRejection.

Pure transform: no I/O, no logging. Header names are matched after trimming
and lower-casing, so "Email " and "email" are the same column.
"""
import re
from typing import Dict, Any, Union

from leadscore.errors import MissingFieldsError, InvalidEmailError
from leadscore.pipeline.base import LeadRecord, RowRejection

REQUIRED_FIELDS = ('name', 'email', 'role', 'industry')
OPTIONAL_FIELDS = ('company', 'linkedin', 'phone')

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def normalize_row(row: Dict[Any, Any]) -> Dict[str, str]:
    """Lower-case/trim keys and trim values; None becomes ''."""
    normalized = {}
    for key, value in row.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        normalized[name] = '' if value is None else str(value).strip()
    return normalized


def build_lead_record(row: Dict[Any, Any]) -> LeadRecord:
    """
    Build the canonical record for one row.

    Raises:
        MissingFieldsError: a required field is absent or blank.
        InvalidEmailError: email does not look like local@domain.tld.
    """
    fields = normalize_row(row)

    missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise MissingFieldsError(missing)

    email = fields['email'].lower()
    if not EMAIL_PATTERN.match(email):
        raise InvalidEmailError(email)

    return LeadRecord(
        name=fields['name'],
        email=email,
        role=fields['role'],
        industry=fields['industry'],
        **{name: fields.get(name, '') for name in OPTIONAL_FIELDS},
    )


def validate_row(row: Dict[Any, Any], position: int) -> Union[LeadRecord, RowRejection]:
    """Validate one row; rejections keep the row's 1-based position and original data."""
    try:
        return build_lead_record(row)
    except (MissingFieldsError, InvalidEmailError) as e:
        return RowRejection(row=position, message=e.message, data=dict(row), error=e)
