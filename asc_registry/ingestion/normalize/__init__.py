"""Field normalizers and the record normalization stage"""

from .fields import (
    NormalizedPhone,
    normalize_address,
    normalize_certification_type,
    normalize_city,
    normalize_company_name,
    normalize_county,
    normalize_date,
    normalize_person_name,
    normalize_phone,
    normalize_state_code,
    normalize_status,
    normalize_zip,
)
from .records import normalize_license_frame, normalize_license_record

__all__ = [
    'NormalizedPhone',
    'normalize_address',
    'normalize_certification_type',
    'normalize_city',
    'normalize_company_name',
    'normalize_county',
    'normalize_date',
    'normalize_person_name',
    'normalize_phone',
    'normalize_state_code',
    'normalize_status',
    'normalize_zip',
    'normalize_license_frame',
    'normalize_license_record',
]
