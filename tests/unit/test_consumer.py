"""Unit tests for src/consumer.py"""

import dataclasses

import pytest

from src.consumer import (
    BLANK_TEMPLATE,
    Consumer,
    ConsumerBuilder,
    ConsumerTemplate,
    SignatureMethod,
    is_absolute_uri,
    is_valid_key_format,
)
from src.errors import ConsumerValidationError


def builder(**overrides):
    values = {
        "key": "my-app",
        "name": "My App",
        "secret": "s3cr3t",
        "callback": None,
        "signature_method": SignatureMethod.HMAC_SHA1,
    }
    values.update(overrides)
    return (
        ConsumerBuilder(values["key"])
        .name(values["name"])
        .secret(values["secret"])
        .callback(values["callback"])
        .signature_method(values["signature_method"])
    )


class TestKeyFormat:
    """Tests for is_valid_key_format."""

    @pytest.mark.parametrize("key", ["abcd", "ab-cd", "ab-12", "-a-", "ABC123"])
    def test_accepts_alphanumeric_with_hyphens(self, key):
        """Should accept keys that are alphanumeric once hyphens are removed."""
        assert is_valid_key_format(key) is True

    @pytest.mark.parametrize("key", ["", "-", "---", "ab!cd", "ab cd", "ab_cd", None])
    def test_rejects_empty_or_non_alphanumeric(self, key):
        """Should reject empty keys and keys with other punctuation."""
        assert is_valid_key_format(key) is False

    @pytest.mark.parametrize("key", ["ab²", "Ⅷ", "x½"])
    def test_rejects_non_decimal_numerals(self, key):
        """Should accept only letters and decimal digits."""
        assert is_valid_key_format(key) is False

    def test_accepts_non_ascii_letters_and_digits(self):
        assert is_valid_key_format("café-٣") is True


class TestAbsoluteUri:
    def test_accepts_absolute_uri(self):
        assert is_absolute_uri("https://example.com/callback") is True

    @pytest.mark.parametrize("value", ["", "not a url", "/relative", "example.com"])
    def test_rejects_non_absolute(self, value):
        assert is_absolute_uri(value) is False

    @pytest.mark.parametrize(
        "value",
        ["http://exa\tmple.com", "http://example.com/c\nb", "http://a b.com"],
    )
    def test_rejects_whitespace_and_control_characters(self, value):
        assert is_absolute_uri(value) is False


class TestConsumerBuilder:
    """Tests for ConsumerBuilder."""

    def test_build_returns_consumer(self):
        """Should build a consumer with every attribute set."""
        consumer = builder(callback="http://localhost/cb").build()
        assert consumer == Consumer(
            key="my-app",
            name="My App",
            secret="s3cr3t",
            callback="http://localhost/cb",
            signature_method=SignatureMethod.HMAC_SHA1,
        )

    def test_callback_defaults_to_none(self):
        """Should leave the callback unset when not given."""
        consumer = (
            ConsumerBuilder("abc")
            .name("ABC")
            .secret("x")
            .signature_method(SignatureMethod.HMAC_SHA1)
            .build()
        )
        assert consumer.callback is None

    def test_setters_are_fluent(self):
        b = ConsumerBuilder()
        assert b.key("abc") is b
        assert b.name("n") is b

    def test_invalid_key_rejected(self):
        """Should reject keys with non-alphanumeric characters."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(key="ab!cd").build()
        assert set(exc_info.value.violations) == {"key"}

    def test_missing_key_rejected(self):
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(key=None).build()
        assert "key" in exc_info.value.violations

    def test_blank_name_rejected(self):
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(name="   ").build()
        assert set(exc_info.value.violations) == {"name"}

    def test_blank_secret_rejected(self):
        """Should reject a secret that is given but blank."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(secret=" ").build()
        assert set(exc_info.value.violations) == {"secret"}

    def test_hmac_requires_secret(self):
        """Should require a secret for HMAC-SHA1."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(secret=None).build()
        assert "HMAC-SHA1" in exc_info.value.violations["secret"]

    def test_empty_callback_rejected(self):
        """Should treat an explicit empty callback as invalid rather than absent."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(callback="").build()
        assert set(exc_info.value.violations) == {"callback"}

    def test_callback_with_control_characters_rejected(self):
        """Should never build a consumer around a callback containing tabs or newlines."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(callback="http://exa\tmple.com/c\nb").build()
        assert set(exc_info.value.violations) == {"callback"}

    def test_missing_signature_method_rejected(self):
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(signature_method=None).build()
        assert "signature_method" in exc_info.value.violations

    def test_unsupported_signature_method_rejected(self):
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(signature_method="RSA-SHA1").build()
        assert "signature_method" in exc_info.value.violations

    def test_reports_every_violation(self):
        """Should enumerate every offending attribute at once."""
        with pytest.raises(ConsumerValidationError) as exc_info:
            builder(key="", name="", callback="nope").build()
        assert set(exc_info.value.violations) == {"key", "name", "callback"}
        assert "key" in str(exc_info.value)

    def test_from_consumer_copies_attributes(self):
        original = builder(callback="https://example.com").build()
        copy = ConsumerBuilder.from_consumer(original).name("Renamed").build()
        assert copy.key == original.key
        assert copy.callback == original.callback
        assert copy.name == "Renamed"


class TestConsumer:
    """Tests for the Consumer value."""

    def test_is_immutable(self):
        consumer = builder().build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            consumer.key = "other"

    def test_direct_construction_is_validated(self):
        """Should never allow an invalid instance, even bypassing the builder."""
        with pytest.raises(ConsumerValidationError):
            Consumer(key="bad key", name="x", signature_method=SignatureMethod.HMAC_SHA1)


class TestConsumerTemplate:
    """Tests for the blank add-form template."""

    def test_placeholder_values(self):
        assert BLANK_TEMPLATE.key == "Enter Key"
        assert BLANK_TEMPLATE.name == "Enter Name"
        assert BLANK_TEMPLATE.signature_method is SignatureMethod.HMAC_SHA1
        assert BLANK_TEMPLATE.secret is None
        assert BLANK_TEMPLATE.callback is None

    def test_is_not_a_consumer(self):
        assert isinstance(BLANK_TEMPLATE, ConsumerTemplate)
        assert not isinstance(BLANK_TEMPLATE, Consumer)
