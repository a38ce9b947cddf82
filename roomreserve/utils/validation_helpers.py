import re
from roomreserve.utils.clock import parse_date, parse_time
from roomreserve.utils.errors import ValidationError


STUDENT_ID_PATTERN = re.compile(r"^2\d{5}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_slot(day, start_time, end_time):
    """Check the wire format of a requested slot and that it runs forward within one day."""
    try:
        parse_date(day)
        start = parse_time(start_time)
        end = parse_time(end_time)
    except ValueError as e:
        raise ValidationError(str(e))
    if start >= end:
        raise ValidationError("Start time must be before end time")
    return day, start_time, end_time


def validate_student_id(value):
    if not STUDENT_ID_PATTERN.match(value):
        raise ValueError("Student ID must be in format 2xxxxx (2 followed by 5 digits)")
    return value


def validate_email(value, domain=None):
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    if domain and not value.endswith(f"@{domain}"):
        raise ValueError(f"Only @{domain} email addresses are allowed")
    return value
