"""
Consecutive and clave encoding.

Layouts (all numeric, fixed width):

    consecutive (20) = branch(3) + terminal(5) + document type(2) + sequence(10)
    clave (50)       = country(3) + emission date DDMMYY(6) + issuer id(12)
                       + consecutive(20) + situation(1) + security code(8)

The issuer identification type does not appear in the clave; it fixes the
number of digits the issuer id must have before it is zero-padded to 12.
"""

import secrets
from datetime import date, datetime

from facturacr.core.entities.document import IdentificationType
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.sequence import (
    BRANCH_WIDTH,
    MAX_SEQUENCE,
    SEQUENCE_WIDTH,
    TERMINAL_WIDTH,
    ClaveComponents,
    ConsecutiveParts,
    SituationCode,
)
from facturacr.core.exceptions import InvalidKeyComponentsError

CLAVE_LENGTH = 50
CONSECUTIVE_LENGTH = 20
COUNTRY_CODE = "506"
ISSUER_ID_WIDTH = 12
SECURITY_CODE_WIDTH = 8
DOCUMENT_TYPE_WIDTH = 2
DATE_FORMAT = "%d%m%y"


def _fixed_digits(component: str, value, width: int) -> str:
    text = str(value).strip()
    if not text.isdigit():
        raise InvalidKeyComponentsError(component, value, f"digits only, width {width}")
    if len(text) > width:
        raise InvalidKeyComponentsError(component, value, f"at most {width} digits")
    return text.zfill(width)


def normalize_issuer_id(issuer_type: IdentificationType | str, issuer_id: str) -> str:
    """Validate an issuer id against its type and pad it to 12 digits."""
    try:
        id_type = IdentificationType(issuer_type)
    except ValueError:
        raise InvalidKeyComponentsError(
            "issuer_type", issuer_type, "one of 01, 02, 03, 04"
        ) from None

    digits = str(issuer_id).replace("-", "").replace(" ", "")
    if not digits.isdigit():
        raise InvalidKeyComponentsError("issuer_id", issuer_id, "digits only")
    if len(digits) not in id_type.allowed_lengths:
        lengths = " or ".join(str(n) for n in id_type.allowed_lengths)
        raise InvalidKeyComponentsError(
            "issuer_id", issuer_id, f"{lengths} digits for identification type {id_type.value}"
        )
    return digits.zfill(ISSUER_ID_WIDTH)


def format_consecutive(
    branch: str,
    terminal: str,
    document_type: DocumentType | str,
    sequence: int,
) -> str:
    """Encode branch, terminal, document type and sequence as 20 digits."""
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise InvalidKeyComponentsError("sequence", sequence, f"1..{MAX_SEQUENCE}")

    doc_type = document_type.value if isinstance(document_type, DocumentType) else document_type
    return (
        _fixed_digits("branch", branch, BRANCH_WIDTH)
        + _fixed_digits("terminal", terminal, TERMINAL_WIDTH)
        + _fixed_digits("document_type", doc_type, DOCUMENT_TYPE_WIDTH)
        + str(sequence).zfill(SEQUENCE_WIDTH)
    )


def decode_consecutive(consecutive: str) -> ConsecutiveParts:
    if len(consecutive) != CONSECUTIVE_LENGTH or not consecutive.isdigit():
        raise InvalidKeyComponentsError("consecutive", consecutive, "exactly 20 digits")
    return ConsecutiveParts(
        branch=consecutive[0:3],
        terminal=consecutive[3:8],
        document_type=consecutive[8:10],
        sequence=int(consecutive[10:]),
    )


def build_clave(
    issuer_type: IdentificationType | str,
    issuer_id: str,
    consecutive: str,
    situation: SituationCode | str,
    security_code: str,
    emission_date: date | datetime,
    country_code: str = COUNTRY_CODE,
) -> str:
    """
    Build the 50-digit document key.

    Raises:
        InvalidKeyComponentsError: a component does not fit its width
    """
    issuer = normalize_issuer_id(issuer_type, issuer_id)

    if len(consecutive) != CONSECUTIVE_LENGTH or not consecutive.isdigit():
        raise InvalidKeyComponentsError("consecutive", consecutive, "exactly 20 digits")

    try:
        situation_code = SituationCode(situation).value
    except ValueError:
        raise InvalidKeyComponentsError("situation", situation, "one of 1, 2, 3") from None

    clave = (
        _fixed_digits("country_code", country_code, 3)
        + emission_date.strftime(DATE_FORMAT)
        + issuer
        + consecutive
        + situation_code
        + _fixed_digits("security_code", security_code, SECURITY_CODE_WIDTH)
    )
    if len(clave) != CLAVE_LENGTH:
        raise InvalidKeyComponentsError("clave", clave, f"exactly {CLAVE_LENGTH} digits")
    return clave


def decode_clave(clave: str) -> ClaveComponents:
    """Split a clave back into its components."""
    if len(clave) != CLAVE_LENGTH or not clave.isdigit():
        raise InvalidKeyComponentsError("clave", clave, f"exactly {CLAVE_LENGTH} digits")

    try:
        emission_date = datetime.strptime(clave[3:9], DATE_FORMAT).date()
    except ValueError:
        raise InvalidKeyComponentsError("emission_date", clave[3:9], "DDMMYY") from None
    try:
        situation = SituationCode(clave[41])
    except ValueError:
        raise InvalidKeyComponentsError("situation", clave[41], "one of 1, 2, 3") from None

    consecutive = clave[21:41]
    return ClaveComponents(
        country_code=clave[0:3],
        emission_date=emission_date,
        issuer_id=clave[9:21].lstrip("0") or "0",
        consecutive=consecutive,
        consecutive_parts=decode_consecutive(consecutive),
        situation=situation,
        security_code=clave[42:50],
    )


def generate_security_code() -> str:
    """Random 8-digit security code."""
    return f"{secrets.randbelow(10**SECURITY_CODE_WIDTH):0{SECURITY_CODE_WIDTH}d}"
