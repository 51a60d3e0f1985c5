"""
Column contracts for pipeline inputs and outputs.

Raw headers are matched through ``header_key`` so that "Licensing State",
"licensing_state" and "LICENSING-STATE" all map to the same column.
"""

import re
from typing import Dict, List

_HEADER_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def header_key(header: str) -> str:
    """Snake-case key for a source header: lower-case, non-alphanumerics collapsed to '_'."""
    return _HEADER_SEPARATOR_RE.sub("_", str(header).strip().lower()).strip("_")


# Input A: registry export headers -> snake_case raw columns
RAW_LICENSE_HEADERS: Dict[str, str] = {
    "Licensing State": "licensing_state",
    "State License Number": "state_license_number",
    "First Name": "first_name",
    "Middle Name": "middle_name",
    "Last Name": "last_name",
    "Name Suffix": "name_suffix",
    "Effective Date of License": "effective_date_of_license",
    "Expiration Date of License": "expiration_date_of_license",
    "License Certificate Type": "license_certificate_type",
    "Status": "status",
    "Company Name": "company_name",
    "Telephone Number": "telephone_number",
    "Street Address": "street_address",
    "City": "city",
    "State": "state",
    "County": "county",
    "Zip Code": "zip_code",
    "Conforms to AQB Criteria": "conforms_to_aqb_criteria",
    "Disciplinary Action": "disciplinary_action",
    "Disciplinary Action Effective Date": "disciplinary_action_effective_date",
    "Disciplinary Action Ending Date": "disciplinary_action_ending_date",
}

RAW_LICENSE_COLUMNS: List[str] = list(RAW_LICENSE_HEADERS.values())

NORMALIZED_LICENSE_COLUMNS: List[str] = [
    'licensing_state',
    'license_number',
    'first_name',
    'middle_name',
    'last_name',
    'name_suffix',
    'effective_date',
    'expiration_date',
    'certification_type',
    'status_license',
    'company_name',
    'phone_number',
    'phone_extension',
    'address_line1',
    'city_name',
    'state_code',
    'county_name',
    'zip_code',
    'aqb_compliant',
    'disciplinary_action',
    'disciplinary_start_date',
    'disciplinary_end_date',
]

ACTIVE_LICENSE_COLUMNS: List[str] = [
    'first_name',
    'last_name',
    'certification_type',
    'licensing_state',
    'license_number',
    'status_license',
    'effective_date',
    'expiration_date',
]

# Input B: ZIP/population table (SimpleMaps uszips layout)
ZIP_GEO_COLUMNS: List[str] = [
    'zip',
    'lat',
    'lng',
    'city',
    'state_id',
    'state_name',
    'zcta',
    'parent_zcta',
    'population',
    'density',
    'county_fips',
    'county_name',
    'county_weights',
    'county_names_all',
    'county_fips_all',
    'imprecise',
    'military',
    'timezone',
]

ZIP_GEO_REQUIRED_COLUMNS: List[str] = ['zip', 'city', 'state_id', 'zcta', 'population']

# Certification types that get their own counts in every rollup
CERT_GENERAL = "Certified General"
CERT_RESIDENTIAL = "Certified Residential"
CERT_LICENSED = "Licensed"

CERTIFICATION_BREAKDOWN = {
    'certified_general': CERT_GENERAL,
    'certified_residential': CERT_RESIDENTIAL,
    'licensed': CERT_LICENSED,
}

# USPS codes accepted in region definitions (states, DC, territories)
US_STATE_CODES = frozenset([
    'AL', 'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'FL', 'GA',
    'HI', 'ID', 'IL', 'IN', 'IA', 'KS', 'KY', 'LA', 'ME', 'MD',
    'MA', 'MI', 'MN', 'MS', 'MO', 'MT', 'NE', 'NV', 'NH', 'NJ',
    'NM', 'NY', 'NC', 'ND', 'OH', 'OK', 'OR', 'PA', 'RI', 'SC',
    'SD', 'TN', 'TX', 'UT', 'VT', 'VA', 'WA', 'WV', 'WI', 'WY',
    'DC', 'PR', 'GU', 'VI', 'AS', 'MP',
])
