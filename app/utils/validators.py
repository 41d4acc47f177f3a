import re
from datetime import date, datetime
from typing import Optional, Tuple

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

# US SSN (123-45-6789) or a bare 9 digit number (SSN without dashes, Canadian SIN)
NATIONAL_ID_PATTERN = r'^(\d{3}-\d{2}-\d{4}|\d{3} \d{3} \d{3}|\d{9})$'

US_STATES = [
    'AL', 'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'FL', 'GA',
    'HI', 'ID', 'IL', 'IN', 'IA', 'KS', 'KY', 'LA', 'ME', 'MD',
    'MA', 'MI', 'MN', 'MS', 'MO', 'MT', 'NE', 'NV', 'NH', 'NJ',
    'NM', 'NY', 'NC', 'ND', 'OH', 'OK', 'OR', 'PA', 'RI', 'SC',
    'SD', 'TN', 'TX', 'UT', 'VT', 'VA', 'WA', 'WV', 'WI', 'WY', 'DC'
]

CANADIAN_PROVINCES = [
    'AB', 'BC', 'MB', 'NB', 'NL', 'NS', 'NT', 'NU', 'ON', 'PE', 'QC', 'SK', 'YT'
]


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    if not email:
        return False, "Email is required"
    if not re.match(EMAIL_PATTERN, email):
        return False, "Invalid email format"
    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """Validate phone number (North American format)"""
    # Remove all non-digits
    digits = re.sub(r'\D', '', phone)

    if len(digits) == 10:
        return True, f"+1{digits}"
    elif len(digits) == 11 and digits[0] == '1':
        return True, f"+{digits}"
    else:
        return False, "Invalid phone number. Please provide a valid North American phone number"


def validate_date_of_birth(value: str, today: date = None) -> Tuple[bool, Optional[str]]:
    """Validate a YYYY-MM-DD date of birth that lies in the past"""
    try:
        dob = datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return False, "Date of birth must be in YYYY-MM-DD format"

    today = today or date.today()
    if dob >= today:
        return False, "Date of birth must be in the past"
    if dob.year < 1900:
        return False, "Date of birth is out of range"
    return True, None


def validate_national_id(value: str) -> Tuple[bool, Optional[str]]:
    """Validate SSN / SIN format"""
    if not re.match(NATIONAL_ID_PATTERN, value.strip()):
        return False, "National ID must be 9 digits (XXX-XX-XXXX)"
    digits = re.sub(r'\D', '', value)
    if digits == '000000000':
        return False, "National ID is not valid"
    return True, None


def validate_region_code(code: str) -> Tuple[bool, Optional[str]]:
    """Validate a two-letter US state or Canadian province code"""
    if code.upper() not in US_STATES and code.upper() not in CANADIAN_PROVINCES:
        return False, "Invalid state or province code"
    return True, None


def mask_national_id(value: str) -> str:
    """Mask all but the last four digits"""
    if not value:
        return ''
    digits = re.sub(r'\D', '', value)
    return f"***-**-{digits[-4:]}" if len(digits) >= 4 else '****'
