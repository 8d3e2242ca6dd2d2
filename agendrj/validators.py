# agendrj/validators.py
import re
from datetime import date, datetime
from typing import Optional, Union

from .errors import InvalidInput

_NON_DIGITS = re.compile(r"\D")


def only_digits(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def validate_cpf(cpf: Optional[str]) -> bool:
    """
    Valida CPF pelo algoritmo oficial (dois dígitos verificadores, módulo 11).
    Aceita com ou sem máscara: '529.982.247-25' ou '52998224725'.
    """
    digits = only_digits(cpf)
    if len(digits) != 11:
        return False
    # sequências repetidas passam no cálculo mas não são CPFs válidos
    if digits == digits[0] * 11:
        return False

    nums = [int(d) for d in digits]
    for size in (9, 10):
        total = sum(n * w for n, w in zip(nums[:size], range(size + 1, 1, -1)))
        rest = total % 11
        check = 0 if rest < 2 else 11 - rest
        if nums[size] != check:
            return False
    return True


def normalize_cpf(cpf: Optional[str], field: str = "cpf") -> str:
    """Devolve os 11 dígitos do CPF ou levanta InvalidInput."""
    if not validate_cpf(cpf):
        raise InvalidInput("CPF inválido.", field=field)
    return only_digits(cpf)


def is_valid_phone(phone: Optional[str]) -> bool:
    n = len(only_digits(phone))
    return 10 <= n <= 11


def phone_to_international(phone: Optional[str]) -> str:
    """'(21) 9 9999-9999' -> '+5521999999999'."""
    digits = only_digits(phone)
    if digits.startswith("55"):
        return f"+{digits}"
    return f"+55{digits}"


def parse_date(value: Union[str, date, datetime, None], field: str = "birth_date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = (value or "").strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(s[:10], fmt).date()
        except ValueError:
            pass
    raise InvalidInput("Data inválida. Use YYYY-MM-DD ou DD/MM/YYYY.", field=field)


def calculate_age(birth_date: Union[str, date, datetime], today: Optional[date] = None) -> int:
    born = parse_date(birth_date)
    today = today or date.today()
    age = today.year - born.year
    # ainda não fez aniversário este ano
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def normalize_whatsapp(phone: Optional[str], field: str = "whatsapp") -> str:
    """Aceita '(21) 9 9999-9999', '21999999999' ou '+5521999999999'."""
    digits = only_digits(phone)
    if len(digits) in (12, 13) and digits.startswith("55"):
        digits = digits[2:]
    if not is_valid_phone(digits):
        raise InvalidInput("Número de WhatsApp inválido.", field=field)
    return phone_to_international(digits)
