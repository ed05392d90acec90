"""Tests for the field descriptor contract and extraction prompt."""

import json

import pytest
from pydantic import ValidationError

from backend.forms.fields import FieldDescriptor, FieldType, check_field_descriptors
from backend.forms.prompts import FORM_EXTRACTION_PROMPT


class TestFieldDescriptor:

    def test_valid_descriptor(self):
        field = FieldDescriptor(fieldName="emailAddress", label="Email Address", type="email")
        assert field.type is FieldType.EMAIL

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(fieldName="signature", label="Signature", type="signature")

    def test_empty_label_rejected(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(fieldName="x", label="", type="text")


class TestCheckFieldDescriptors:

    def test_valid_array(self):
        raw = json.dumps([
            {"fieldName": "fullName", "label": "Full Name", "type": "text"},
            {"fieldName": "phone", "label": "Phone", "type": "phone"},
        ])
        check = check_field_descriptors(raw)
        assert check.matches
        assert check.field_count == 2

    def test_single_key_wrapper_is_unwrapped(self):
        raw = json.dumps({"fields": [{"fieldName": "age", "label": "Age", "type": "number"}]})
        check = check_field_descriptors(raw)
        assert check.matches
        assert check.field_count == 1

    def test_invalid_json(self):
        check = check_field_descriptors("not json")
        assert not check.matches
        assert "invalid JSON" in check.violations[0]

    def test_object_is_not_a_list(self):
        check = check_field_descriptors('{"a": 1, "b": 2}')
        assert not check.matches

    def test_bad_items_reported_with_index(self):
        raw = json.dumps([
            {"fieldName": "ok", "label": "OK", "type": "text"},
            {"fieldName": "bad", "label": "Bad", "type": "slider"},
        ])
        check = check_field_descriptors(raw)
        assert not check.matches
        assert check.violations[0].startswith("[1] type")


class TestPrompt:

    def test_lists_every_field_type(self):
        for field_type in FieldType:
            assert f'"{field_type.value}"' in FORM_EXTRACTION_PROMPT

    def test_describes_descriptor_keys(self):
        for key in ("fieldName", "label", "type"):
            assert f'"{key}"' in FORM_EXTRACTION_PROMPT
