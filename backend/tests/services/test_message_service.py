"""
Unit tests for MessageService and the content rules.
"""

import pytest

from roomchat.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from roomchat.services.message_service import MessageService, normalize_content


class TestNormalizeContent:
    def test_trims_whitespace(self):
        assert normalize_content("  hello  ") == "hello"

    @pytest.mark.parametrize("content", [None, "", " \n\t "])
    def test_blank_is_rejected(self, content):
        with pytest.raises(ValidationException) as exc_info:
            normalize_content(content)
        assert exc_info.value.code == "content_required"

    def test_length_is_measured_after_trim(self):
        assert normalize_content("  " + "x" * 500 + "  ") == "x" * 500

    def test_too_long_is_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_content("x" * 501)
        assert exc_info.value.code == "content_too_long"

    def test_custom_limit(self):
        with pytest.raises(ValidationException):
            normalize_content("abcd", max_length=3)

    def test_zero_limit_is_not_treated_as_default(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_content("a", max_length=0)
        assert exc_info.value.code == "content_too_long"


class TestMessageService:
    @pytest.fixture
    def service(self, db) -> MessageService:
        return MessageService(db)

    def test_create_hydrates_sender(self, service, alice):
        message = service.create_message(alice.id, " hi ")

        assert message.content == "hi"
        assert message.sender.id == alice.id
        assert message.sender.username == "alice"
        assert message.created_at.tzinfo is not None

    def test_list_is_oldest_first(self, service, alice, bob):
        first = service.create_message(alice.id, "one")
        second = service.create_message(bob.id, "two")

        assert [m.id for m in service.list_messages()] == [first.id, second.id]

    def test_edit_validates_before_lookup(self, service, alice):
        with pytest.raises(ValidationException):
            service.edit_message("missing", alice.id, "   ")

    def test_edit_missing_is_not_found(self, service, alice):
        with pytest.raises(NotFoundException):
            service.edit_message("missing", alice.id, "text")

    def test_edit_by_non_owner_is_forbidden(self, service, alice, bob):
        message = service.create_message(alice.id, "original")

        with pytest.raises(ForbiddenException):
            service.edit_message(message.id, bob.id, "changed")

        assert service.get_message(message.id).content == "original"

    def test_edit_keeps_created_at(self, service, alice):
        message = service.create_message(alice.id, "original")

        edited = service.edit_message(message.id, alice.id, "changed")

        assert edited.content == "changed"
        assert edited.created_at == message.created_at
        assert edited.updated_at >= message.updated_at

    def test_delete_by_owner(self, service, alice):
        message = service.create_message(alice.id, "bye")

        service.delete_message(message.id, alice.id)

        with pytest.raises(NotFoundException):
            service.get_message(message.id)

    def test_delete_by_non_owner_is_forbidden(self, service, alice, bob):
        message = service.create_message(alice.id, "stay")

        with pytest.raises(ForbiddenException):
            service.delete_message(message.id, bob.id)

        assert len(service.list_messages()) == 1
