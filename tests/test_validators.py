# tests/test_validators.py
from datetime import date

import pytest

from agendrj.errors import InvalidInput
from agendrj.formatters import br_date, format_cpf, format_phone, status_label
from agendrj.validators import (
    calculate_age, normalize_cpf, normalize_whatsapp, phone_to_international, validate_cpf,
)


@pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725", "111.444.777-35", "39053344705"])
def test_validate_cpf_accepts_valid_check_digits(cpf):
    assert validate_cpf(cpf)


@pytest.mark.parametrize("cpf", [
    "111.111.111-11",   # dígitos repetidos
    "00000000000",
    "123.456.789-00",   # dígito verificador errado
    "529.982.247-26",
    "5299822472",       # curto
    "529982247250",     # longo
    "",
    None,
])
def test_validate_cpf_rejects(cpf):
    assert not validate_cpf(cpf)


def test_normalize_cpf_strips_mask_or_raises():
    assert normalize_cpf("529.982.247-25") == "52998224725"
    with pytest.raises(InvalidInput) as exc:
        normalize_cpf("123.456.789-00", field="guardian_cpf")
    assert exc.value.field == "guardian_cpf"


def test_calculate_age_before_and_after_birthday():
    today = date(2026, 10, 19)
    assert calculate_age("2011-10-19", today=today) == 15
    assert calculate_age("2011-10-20", today=today) == 14
    assert calculate_age("20/10/2011", today=today) == 14
    assert calculate_age(date(1990, 1, 1), today=today) == 36


def test_calculate_age_rejects_garbage():
    with pytest.raises(InvalidInput):
        calculate_age("ontem")


def test_phone_helpers():
    assert phone_to_international("(21) 9 9999-9999") == "+5521999999999"
    assert phone_to_international("5521999999999") == "+5521999999999"
    assert normalize_whatsapp("+55 21 99999-9999") == "+5521999999999"
    assert normalize_whatsapp("2133334444") == "+552133334444"
    with pytest.raises(InvalidInput):
        normalize_whatsapp("999")


def test_display_formatters():
    assert format_cpf("52998224725") == "529.982.247-25"
    assert format_phone("+5521999999999") == "(21) 9 9999-9999"
    assert br_date("2026-10-19") == "19/10/2026"
    assert status_label("waiting") == status_label("assigned") == "Em Atendimento"
    assert status_label("nope") == "Status desconhecido"
