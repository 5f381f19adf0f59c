from futmeet.ids import SESSION_ALPHABET, generate_session_id, is_valid_session_id


def test_generated_ids_are_alphanumeric_and_valid():
    ids = {generate_session_id() for _ in range(50)}

    assert len(ids) == 50
    for value in ids:
        assert len(value) == 21
        assert set(value) <= set(SESSION_ALPHABET)
        assert is_valid_session_id(value)


def test_legacy_ids_with_dash_and_underscore_are_valid():
    assert is_valid_session_id("abc_DEF-123456789012a")


def test_invalid_ids():
    assert not is_valid_session_id("short")
    assert not is_valid_session_id("a" * 22)
    assert not is_valid_session_id("abc def 1234567890123")
    assert not is_valid_session_id("a" * 20 + "\n")
