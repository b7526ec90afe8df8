"""Tests for the pass-cli output normalizer."""

import pytest

from passdeck.passcli.errors import PassCliError, PassCliErrorType
from passdeck.passcli.models import CustomFieldType, ItemType, VaultRole
from passdeck.passcli.normalize import (
    UNKNOWN_VAULT_NAME,
    detect_item_type,
    normalize_custom_fields,
    normalize_item,
    normalize_item_detail,
    normalize_item_list,
    normalize_password_score,
    normalize_totp_codes,
    normalize_vault,
    normalize_vault_list,
    normalize_vault_role,
    parse_json,
    select_totp_code,
    unwrap_envelope,
    unwrap_list,
)


def _assert_invalid(exc_info):
    assert exc_info.value.error_type is PassCliErrorType.INVALID_OUTPUT


class TestParseJson:
    def test_parses_object(self):
        assert parse_json('{"a": 1}', "vault list") == {"a": 1}

    def test_garbage_is_invalid_output(self):
        with pytest.raises(PassCliError) as exc_info:
            parse_json("Welcome to pass-cli!", "vault list")
        _assert_invalid(exc_info)
        assert "vault list" in exc_info.value.message

    def test_empty_is_invalid_output(self):
        with pytest.raises(PassCliError) as exc_info:
            parse_json("", "item view")
        _assert_invalid(exc_info)


class TestEnvelopes:
    def test_unwrap_list_bare(self):
        assert unwrap_list([1, 2], "items", "item list") == [1, 2]

    def test_unwrap_list_keyed(self):
        assert unwrap_list({"items": [1]}, "items", "item list") == [1]

    def test_unwrap_list_wrong_shape(self):
        with pytest.raises(PassCliError) as exc_info:
            unwrap_list({"vaults": "nope"}, "vaults", "vault list")
        _assert_invalid(exc_info)

    def test_unwrap_envelope_two_levels(self):
        record = {"id": "x"}
        assert unwrap_envelope({"data": {"item": record}}) == record

    def test_unwrap_envelope_stops_at_depth(self):
        record = {"id": "x"}
        wrapped = {"data": {"result": {"item": record}}}
        assert unwrap_envelope(wrapped) == {"item": record}

    def test_unwrap_envelope_leaves_plain_record(self):
        record = {"id": "x", "content": {"title": "t"}}
        assert unwrap_envelope(record) is record


class TestVaults:
    def test_normalize_vault_list(self, vault_list_payload):
        vaults = normalize_vault_list(vault_list_payload)
        assert [v.share_id for v in vaults] == ["share-1", "share-2"]
        assert vaults[0].item_count == 3
        assert vaults[0].role is VaultRole.OWNER
        assert vaults[1].item_count == 2
        assert vaults[1].role is VaultRole.VIEWER

    def test_bare_list_accepted(self):
        vaults = normalize_vault_list([{"id": "s", "name": "Solo"}])
        assert vaults[0].share_id == "s"
        assert vaults[0].item_count == 0
        assert vaults[0].role is VaultRole.VIEWER

    def test_missing_name_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_vault({"share_id": "s"})
        _assert_invalid(exc_info)

    def test_blank_share_id_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_vault({"share_id": "  ", "name": "Vault"})
        _assert_invalid(exc_info)

    def test_non_numeric_count_is_zero(self):
        vault = normalize_vault({"id": "s", "name": "V", "itemCount": "lots"})
        assert vault.item_count == 0

    def test_unknown_role_defaults_to_viewer(self):
        assert normalize_vault_role("Admin") is VaultRole.VIEWER
        assert normalize_vault_role(None) is VaultRole.VIEWER
        assert normalize_vault_role(" Manager ") is VaultRole.MANAGER


class TestItemType:
    def test_login(self):
        item_type, payload = detect_item_type({"Login": {"username": "u"}})
        assert item_type is ItemType.LOGIN
        assert payload == {"username": "u"}

    def test_note_with_null_payload(self):
        assert detect_item_type({"Note": None}) == (ItemType.NOTE, None)

    def test_snake_case_discriminators(self):
        assert detect_item_type({"credit_card": {}})[0] is ItemType.CREDIT_CARD
        assert detect_item_type({"ssh_key": {}})[0] is ItemType.SSH_KEY

    def test_unknown_defaults_to_note(self):
        assert detect_item_type({"Mystery": {"x": 1}}) == (ItemType.NOTE, None)

    def test_missing_content_defaults_to_note(self):
        assert detect_item_type(None) == (ItemType.NOTE, None)


class TestItems:
    def test_login_item(self, login_item_payload):
        item = normalize_item(login_item_payload, "Personal")
        assert item.key == ("share-1", "item-1")
        assert item.title == "GitHub"
        assert item.type is ItemType.LOGIN
        assert item.username == "octocat"
        assert item.email is None
        assert item.has_totp is True
        assert item.vault_name == "Personal"

    def test_vault_name_argument_wins(self):
        raw = {"id": "i", "share_id": "s", "title": "T", "vaultName": "From Record"}
        assert normalize_item(raw, "Override").vault_name == "Override"
        assert normalize_item(raw).vault_name == "From Record"

    def test_blank_vault_name_argument_is_not_skipped(self):
        raw = {"id": "i", "share_id": "s", "title": "T", "vaultName": "From Record"}
        with pytest.raises(PassCliError) as exc_info:
            normalize_item(raw, "")
        _assert_invalid(exc_info)

    def test_vault_name_fallback(self):
        raw = {"id": "i", "share_id": "s", "title": "T"}
        assert normalize_item(raw).vault_name == UNKNOWN_VAULT_NAME

    def test_title_falls_back_to_name(self):
        raw = {"id": "i", "share_id": "s", "name": "Named"}
        assert normalize_item(raw).title == "Named"

    def test_login_without_totp(self):
        raw = {
            "id": "i",
            "share_id": "s",
            "content": {"title": "T", "content": {"Login": {"totpUri": "  "}}},
        }
        assert normalize_item(raw).has_totp is False

    def test_missing_id_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_item({"share_id": "s", "title": "T"})
        _assert_invalid(exc_info)

    def test_item_list_drops_trashed(self, item_list_payload):
        items = normalize_item_list(item_list_payload, "Personal")
        assert [i.item_id for i in items] == ["item-1", "item-3"]
        assert items[1].type is ItemType.WIFI
        assert items[1].has_totp is False

    def test_item_list_skips_non_objects(self):
        items = normalize_item_list([None, "junk", {"id": "i", "share_id": "s", "title": "T"}])
        assert [i.item_id for i in items] == ["i"]


class TestItemDetail:
    def test_login_detail(self, login_item_payload):
        detail = normalize_item_detail(login_item_payload)
        assert detail.password == "hunter2"
        assert detail.urls == ["https://github.com"]
        assert detail.note == "personal account"
        assert len(detail.custom_fields) == 1
        assert detail.custom_fields[0].name == "PIN"
        assert detail.custom_fields[0].type is CustomFieldType.HIDDEN

    def test_empty_collections_are_none(self):
        raw = {
            "id": "i",
            "share_id": "s",
            "content": {
                "title": "T",
                "content": {"Login": {"urls": []}},
                "extra_fields": [{"name": "", "value": "x"}],
            },
        }
        detail = normalize_item_detail(raw)
        assert detail.urls is None
        assert detail.custom_fields is None
        assert detail.password is None
        assert detail.note is None

    def test_incomplete_custom_fields_dropped_individually(self):
        fields = normalize_custom_fields(
            [
                {"name": "Account", "value": "42"},
                {"name": "No value"},
                {"name": "Blank", "value": "   "},
                {"value": "nameless"},
                {"name": "PIN", "value": "1234", "type": "hidden"},
            ]
        )
        assert [(f.name, f.value) for f in fields] == [("Account", "42"), ("PIN", "1234")]
        assert fields[1].type is CustomFieldType.HIDDEN

    def test_root_level_extra_fields(self):
        raw = {
            "id": "i",
            "share_id": "s",
            "title": "T",
            "extraFields": [{"key": "Account", "value": "42", "type": "text"}],
        }
        detail = normalize_item_detail(raw)
        assert detail.custom_fields[0].name == "Account"
        assert detail.custom_fields[0].type is CustomFieldType.TEXT

    def test_custom_fields_not_a_list(self):
        assert normalize_custom_fields({"name": "x"}) is None

    def test_non_object_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_item_detail(["not", "a", "record"])
        _assert_invalid(exc_info)


class TestTotp:
    def test_prefers_totp_key(self):
        assert select_totp_code({"sms": "111111", "totp": "222222"}) == "222222"

    def test_lexicographic_fallback(self):
        assert select_totp_code({"b": "333333", "a": "444444"}) == "444444"

    def test_no_codes_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            select_totp_code({})
        _assert_invalid(exc_info)

    def test_totps_envelope(self):
        assert normalize_totp_codes({"totps": {"totp": "123456"}}) == {"totp": "123456"}

    def test_blank_codes_dropped(self):
        assert normalize_totp_codes({"totp": "", "backup": "654321"}) == {"backup": "654321"}

    def test_non_object_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_totp_codes(["123456"])
        _assert_invalid(exc_info)


class TestPasswordScore:
    def test_camel_case(self):
        score = normalize_password_score(
            {"numericScore": 87.5, "passwordScore": "Strong", "penalties": ["short"]}
        )
        assert score.numeric_score == 87.5
        assert score.password_score == "Strong"
        assert score.penalties == ["short"]

    def test_snake_case_and_string_number(self):
        score = normalize_password_score({"numeric_score": "42", "password_score": "Weak"})
        assert score.numeric_score == 42.0
        assert score.penalties is None

    def test_defaults(self):
        score = normalize_password_score({"numericScore": "NaN"})
        assert score.numeric_score == 0.0
        assert score.password_score == "Unknown"

    def test_non_object_is_invalid(self):
        with pytest.raises(PassCliError) as exc_info:
            normalize_password_score("Strong")
        _assert_invalid(exc_info)
