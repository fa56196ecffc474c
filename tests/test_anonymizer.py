"""Tests for anonymize / deanonymize round trips."""

import logging

import pytest

from conftest import FakeStore
from privacy_vault import Anonymizer, AnonymizerConfig, Deanonymizer, PIIType, Vault


# ── Strict mode ──────────────────────────────────────────────────────

def test_contact_sentence(anonymizer, deanonymizer):
    text = "contact John Smith at john.smith@company.com or call 555-123-4567"
    result = anonymizer.anonymize(text)
    assert result.text == "contact NAME_32ddaf65 at EMAIL_fdc2a4ab or call PHONE_d36e8308"
    assert result.token_map == {
        "EMAIL_fdc2a4ab": "john.smith@company.com",
        "PHONE_d36e8308": "555-123-4567",
        "NAME_32ddaf65": "John Smith",
    }
    assert [e.entity_type for e in result.entities] == [PIIType.EMAIL, PIIType.PHONE, PIIType.NAME]
    assert deanonymizer.deanonymize(result.text) == text


def test_repeated_email_gets_same_token(anonymizer):
    result = anonymizer.anonymize("Email dborda@gmail.com again: dborda@gmail.com")
    assert result.text == "Email EMAIL_8004719c again: EMAIL_8004719c"


def test_no_pii_unchanged(anonymizer):
    text = "This message contains no personal information."
    result = anonymizer.anonymize(text)
    assert result.text == text
    assert result.entities == []


def test_possessive_before_email_not_a_name(anonymizer):
    result = anonymizer.anonymize("Su email es test@test.com")
    assert result.text.startswith("Su email es EMAIL_")
    assert [e.entity_type for e in result.entities] == [PIIType.EMAIL]


def test_possessive_before_email_not_a_name_lenient(anonymizer):
    result = anonymizer.anonymize("Su email es test@test.com", lenient_names=True)
    assert result.text.startswith("Su email es EMAIL_")
    assert [e.entity_type for e in result.entities] == [PIIType.EMAIL]


def test_lowercase_name_untouched_in_strict_mode(anonymizer):
    text = "cuyo nombre es maria garcia"
    assert anonymizer.anonymize(text).text == text


def test_tokens_stable_across_calls(anonymizer):
    first = anonymizer.anonymize("email Maria Garcia").text
    second = anonymizer.anonymize("email Maria Garcia").text
    assert first == second == "email NAME_f50eb080"


def test_email_is_not_split_into_names(anonymizer):
    result = anonymizer.anonymize("Write to Ana.Lopez@Example.com")
    assert [e.entity_type for e in result.entities] == [PIIType.EMAIL]


def test_rejects_non_string(anonymizer):
    with pytest.raises(TypeError):
        anonymizer.anonymize(None)


# ── Lenient mode ─────────────────────────────────────────────────────

def test_indicator_name_lenient(anonymizer, deanonymizer):
    text = "cuyo nombre es maria garcia"
    result = anonymizer.anonymize(text, lenient_names=True)
    assert result.text == "cuyo nombre es NAME_f50eb080"
    assert deanonymizer.deanonymize(result.text) == text


def test_indicator_replaces_every_occurrence_ignoring_case(anonymizer):
    result = anonymizer.anonymize(
        "se llama maria garcia. MARIA GARCIA confirmed", lenient_names=True,
    )
    assert result.text == "se llama NAME_f50eb080. NAME_f50eb080 confirmed"


def test_lowercase_pair_lenient(anonymizer, deanonymizer):
    text = "send it to dago borda today, dago borda knows"
    result = anonymizer.anonymize(text, lenient_names=True)
    assert result.text.count("NAME_") == 2
    assert "dago borda" not in result.text
    assert deanonymizer.deanonymize(result.text) == text


def test_all_caps_name_shares_token_lenient(vault):
    upper = Anonymizer(vault).anonymize("JOHN SMITH wrote back", lenient_names=True).text
    lower = Anonymizer(Vault()).anonymize("john smith wrote back", lenient_names=True).text
    assert upper.startswith("NAME_32ddaf65 ")
    assert upper == lower
    assert Deanonymizer(vault).deanonymize(upper) == "JOHN SMITH wrote back"


def test_config_enables_lenient_by_default(vault):
    anonymizer = Anonymizer(vault, AnonymizerConfig(lenient_names=True))
    assert anonymizer.anonymize("cuyo nombre es maria garcia").text == "cuyo nombre es NAME_f50eb080"
    assert anonymizer.anonymize("cuyo nombre es maria garcia", lenient_names=False).text == (
        "cuyo nombre es maria garcia"
    )


# ── Configuration ────────────────────────────────────────────────────

def test_allow_list_is_case_insensitive(vault):
    anonymizer = Anonymizer(vault, AnonymizerConfig(allow_list={"acme corp"}))
    result = anonymizer.anonymize("ask Acme Corp about John Smith")
    assert result.text == "ask Acme Corp about NAME_32ddaf65"


def test_skip_types(vault):
    anonymizer = Anonymizer(vault, AnonymizerConfig(skip_types={PIIType.PHONE}))
    result = anonymizer.anonymize("call John Smith at 555-123-4567")
    assert result.text == "call NAME_32ddaf65 at 555-123-4567"


# ── Deanonymize ──────────────────────────────────────────────────────

def test_unknown_token_left_as_is(deanonymizer, caplog):
    with caplog.at_level(logging.WARNING):
        assert deanonymizer.deanonymize("Hello NAME_deadbeef") == "Hello NAME_deadbeef"
    assert "NAME_deadbeef" in caplog.text


def test_mixed_known_and_unknown(anonymizer, deanonymizer):
    anonymizer.anonymize("John Smith")
    assert deanonymizer.deanonymize("NAME_32ddaf65 and NAME_deadbeef") == "John Smith and NAME_deadbeef"


def test_first_surface_form_wins(anonymizer, deanonymizer):
    anonymizer.anonymize("named John Smith", lenient_names=True)
    result = anonymizer.anonymize("named JOHN SMITH", lenient_names=True)
    assert result.text == "named NAME_32ddaf65"
    assert deanonymizer.deanonymize(result.text) == "named John Smith"


def test_text_without_tokens_unchanged(deanonymizer):
    assert deanonymizer.deanonymize("nothing to see, NAME_ here") == "nothing to see, NAME_ here"


def test_type_mismatch_still_restores(anonymizer, deanonymizer, caplog):
    anonymizer.anonymize("John Smith")
    with caplog.at_level(logging.WARNING):
        assert deanonymizer.deanonymize("EMAIL_32ddaf65") == "John Smith"
    assert "stored as NAME" in caplog.text


def test_deanonymize_rejects_non_string(deanonymizer):
    with pytest.raises(TypeError):
        deanonymizer.deanonymize(42)


def test_resolves_from_store_written_by_other_process():
    store = FakeStore()
    Anonymizer(Vault(store)).anonymize("Email dborda@gmail.com")
    fresh = Deanonymizer(Vault(store))
    assert fresh.deanonymize("EMAIL_8004719c") == "dborda@gmail.com"


# ── Degraded store ───────────────────────────────────────────────────

def test_round_trip_with_store_down():
    vault = Vault(FakeStore(fail=True))
    text = "contact John Smith at john.smith@company.com or call 555-123-4567"
    result = Anonymizer(vault).anonymize(text)
    assert "NAME_32ddaf65" in result.text
    assert Deanonymizer(vault).deanonymize(result.text) == text
    assert vault.stats()["store_connected"] is False
