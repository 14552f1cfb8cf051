"""
Built-in redaction defaults.

The lists here are what a service gets when its configuration does not
override them. Sensitive field names are matched as case-insensitive
substrings by default, so short fragments that occur inside ordinary
words ("age" in "message", "ip" in "description") are deliberately absent.

Patterns are ordered: credential shapes with a recognizable prefix first,
then personal data shapes, then the generic high-entropy token last.
"""

from typing import Dict, List, Tuple

DEFAULT_REDACTION_TEXT = "[REDACTED]"

DEFAULT_SENSITIVE_FIELDS: List[str] = [
    # Authentication & security
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "authorization",
    "bearer",
    "apikey",
    "api_key",
    "accesstoken",
    "access_token",
    "refreshtoken",
    "refresh_token",
    "sessionid",
    "session_id",
    "csrf",
    "xsrf",
    "privatekey",
    "private_key",
    "signature",
    "salt",
    "nonce",
    # Financial
    "creditcard",
    "credit_card",
    "cardnumber",
    "card_number",
    "ccnumber",
    "cc_number",
    "cvv",
    "cvc",
    "securitycode",
    "security_code",
    "accountnumber",
    "account_number",
    "routingnumber",
    "routing_number",
    "iban",
    "bankaccount",
    "bank_account",
    "taxid",
    "tax_id",
    # Government & medical identifiers
    "ssn",
    "social_security",
    "passport",
    "driverlicense",
    "driver_license",
    "nationalid",
    "national_id",
    "medicare",
    "medicaid",
    "patientid",
    "patient_id",
    "mrn",
    "diagnosis",
    "medication",
    "medicalhistory",
    "medical_history",
    "biometric",
    "fingerprint",
    # Contact
    "email",
    "phone",
    "mobile",
    "address",
    "postalcode",
    "postal_code",
    "zipcode",
    "zip_code",
    # Personal details
    "firstname",
    "first_name",
    "lastname",
    "last_name",
    "fullname",
    "full_name",
    "birthdate",
    "birth_date",
    "dateofbirth",
    "date_of_birth",
    "dob",
    # System identifiers
    "userid",
    "user_id",
    "customerid",
    "customer_id",
    "employeeid",
    "employee_id",
    # Generic categories
    "pii",
    "phi",
    "sensitive",
    "confidential",
]

# (name, pattern, ignore_case)
DEFAULT_PATTERNS: List[Tuple[str, str, bool]] = [
    ("url_with_credentials", r"https?://[^\s:/@]+:[^\s@]+@[^\s]+", True),
    (
        "connection_string",
        r"(?:Server|Data Source|Initial Catalog|User ID|Password|pwd)\s*=\s*[^;\s]+",
        True,
    ),
    ("jwt", r"\beyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*", False),
    ("bearer_token", r"\bBearer\s+[A-Za-z0-9._~+/-]+=*", True),
    ("aws_key", r"\bAKIA[0-9A-Z]{16}\b", False),
    ("github_token", r"\bghp_[A-Za-z0-9]{36}\b", False),
    ("slack_token", r"\bxox[baprs]-[A-Za-z0-9-]+", False),
    (
        "password_field",
        r"\b(?:password|passwd|pwd|secret|token|api[_-]?key)\s*[:=]\s*[^\s,;}]+",
        True,
    ),
    ("email", r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", False),
    ("iban", r"\b[A-Z]{2}\d{2}[A-Z0-9]{4}\d{7}[A-Z0-9]{0,16}\b", False),
    ("credit_card", r"\b(?:\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}|\d{13,19})\b", False),
    ("ssn", r"\b\d{3}[-\s]\d{2}[-\s]\d{4}\b", False),
    ("ein", r"\b\d{2}-\d{7}\b", False),
    ("phone_us", r"(?:\+1[-.\s]?)?(?:\(\d{3}\)\s?|\b\d{3}[-.\s])\d{3}[-.\s]\d{4}\b", False),
    ("phone_international", r"\+\d{1,3}[-.\s]?\d{6,14}\b", False),
    ("ipv4", r"\b(?:\d{1,3}\.){3}\d{1,3}\b", False),
    ("ipv6", r"\b(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}\b", False),
    ("mac_address", r"\b(?:[0-9a-fA-F]{2}[:-]){5}[0-9a-fA-F]{2}\b", False),
    ("mrn", r"\bMRN[-:]?\s*\d{6,10}\b", True),
    ("patient_id", r"\bPID[-:]?\s*\d{6,10}\b", True),
    # Mixed-case alphanumeric runs with digits; lowercase hex ids
    # (trace ids, commit shas) do not qualify.
    (
        "high_entropy_token",
        r"\b(?=[A-Za-z0-9]*[A-Z])(?=[A-Za-z0-9]*[a-z])(?=[A-Za-z0-9]*\d)[A-Za-z0-9]{32,}\b",
        False,
    ),
]

# Used in PARTIAL mode underneath the configured field strategies.
# Keys are normalized field names.
DEFAULT_FIELD_STRATEGIES: Dict[str, str] = {
    # Contact
    "email": "partial_mask",
    "phone": "partial_mask",
    "mobile": "partial_mask",
    "address": "partial_mask",
    # Financial
    "creditcard": "partial_mask",
    "cardnumber": "partial_mask",
    "accountnumber": "partial_mask",
    "routingnumber": "partial_mask",
    # Authentication & security
    "password": "full_mask",
    "secret": "full_mask",
    "token": "full_mask",
    "apikey": "full_mask",
    "privatekey": "full_mask",
    "signature": "full_mask",
    "salt": "full_mask",
    # Government IDs
    "ssn": "full_mask",
    "passport": "full_mask",
    "driverlicense": "full_mask",
    "nationalid": "full_mask",
    # Medical
    "mrn": "full_mask",
    "patientid": "full_mask",
    "diagnosis": "full_mask",
    "medication": "full_mask",
    "medicalhistory": "full_mask",
    "fingerprint": "full_mask",
    "biometric": "full_mask",
    # Personal details
    "firstname": "partial_mask",
    "lastname": "partial_mask",
    "fullname": "partial_mask",
    "birthdate": "full_mask",
    "dateofbirth": "full_mask",
    "age": "length",
    # System identifiers: hashed so they stay joinable
    "userid": "hash",
    "customerid": "hash",
    "employeeid": "hash",
    # Network
    "ipaddress": "partial_mask",
    "macaddress": "partial_mask",
}
