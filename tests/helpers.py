"""
Shared sample data for the ASC registry tests.

The sample registry is small enough to check every rollup by hand:

    FL  John Smith   two licenses (CG + CR), "ABC LLC" / "Abc", Tampa
    FL  Mary Jones   Licensed, "Sunshine Valuation Inc", Miami
    FL  <no first>   CG, city "Nowhere" (no geo match)
    GA  Bob Brown    CG, "ABC LLC", Atlanta
    GA  Old Timer    CG, Inactive
"""

from datetime import date
from typing import Any, Dict, List

from asc_registry.ingestion.contracts import RAW_LICENSE_COLUMNS, ZIP_GEO_COLUMNS

AS_OF = date(2025, 6, 30)


def make_raw_row(**fields: Any) -> Dict[str, Any]:
    """Raw license row with every source column present (blank by default)."""
    row = {col: '' for col in RAW_LICENSE_COLUMNS}
    row.update(fields)
    return row


def make_zip_row(**fields: Any) -> Dict[str, Any]:
    row = {col: '' for col in ZIP_GEO_COLUMNS}
    row.update(fields)
    return row


SAMPLE_RAW_ROWS: List[Dict[str, Any]] = [
    make_raw_row(
        licensing_state='FL', state_license_number='L1', first_name='JOHN', last_name='SMITH',
        effective_date_of_license='2010-01-15', expiration_date_of_license='2026-01-01',
        license_certificate_type='Certified General', status='Active', company_name='ABC LLC',
        telephone_number='555-111-2222', street_address="1 MAIN ST", city='TAMPA', state='FL',
        county='HILLSBOROUGH', zip_code='33601',
    ),
    make_raw_row(
        licensing_state='FL', state_license_number='L2', first_name='john', last_name='smith',
        effective_date_of_license='2015-03-01', expiration_date_of_license='2027-03-01',
        license_certificate_type='CERTIFIED RESIDENTIAL', status='ACTIVE', company_name='Abc',
        telephone_number='(555) 111-2222', street_address='2 Bay Blvd', city='Tampa', state='FL',
        zip_code='33602-1234',
    ),
    make_raw_row(
        licensing_state='FL', state_license_number='L3', first_name='Mary', last_name='Jones',
        effective_date_of_license='2020-06-01', license_certificate_type='Licensed', status='Active',
        company_name='Sunshine Valuation Inc', telephone_number='813-555-0100', city='Miami',
        state='FL', zip_code='33101',
    ),
    make_raw_row(
        licensing_state='FL', state_license_number='L4', first_name='', last_name='Nobody',
        license_certificate_type='Certified General', status='Active', city='Nowhere', state='FL',
    ),
    make_raw_row(
        licensing_state='GA', state_license_number='G1', first_name='Bob', last_name='Brown',
        effective_date_of_license='2018-01-01', license_certificate_type='Certified General',
        status='Active', company_name='ABC LLC', telephone_number='404-555-0101', city='Atlanta',
        state='GA', zip_code='30301',
    ),
    make_raw_row(
        licensing_state='GA', state_license_number='G2', first_name='Old', last_name='Timer',
        effective_date_of_license='1990-01-01', license_certificate_type='Certified General',
        status='Inactive', city='Atlanta', state='GA', zip_code='30301',
    ),
]

SAMPLE_ZIP_ROWS: List[Dict[str, Any]] = [
    make_zip_row(zip='33601', lat='27.9', lng='-82.4', city='Tampa', state_id='FL', zcta='TRUE',
                 population='1000', density='100.5', county_weights='{"12057": 100}'),
    make_zip_row(zip='33602', lat='27.95', lng='-82.45', city='Tampa', state_id='FL', zcta='TRUE',
                 population='2000', density='200.5'),
    make_zip_row(zip='33603', lat='27.99', lng='-82.49', city='Tampa', state_id='FL', zcta='FALSE',
                 population='500', density='50'),
    make_zip_row(zip='33101', lat='25.77', lng='-80.19', city='Miami', state_id='FL', zcta='TRUE',
                 population='3000', density='300'),
    make_zip_row(zip='30301', lat='33.75', lng='-84.39', city='Atlanta', state_id='GA', zcta='TRUE',
                 population='4000', density='400'),
    make_zip_row(zip='99501', lat='61.2', lng='-149.9', city='Anchorage', state_id='AK', zcta='TRUE',
                 population=''),
]

SAMPLE_REGIONS = {
    'South': ['FL', 'GA'],
    'Southeast': ['FL'],
    'West': ['AK'],
}

