"""
Harvous Backend - Tag Service Unit Tests
=========================================

What we test:
    ✅ Manual tags: duplicate names rejected, category color default
    ✅ apply_auto_tags creates system tags and auto-generated links
    ✅ Existing tags are reused, existing links skipped
    ✅ A failing suggestion is reported without stopping the rest
    ✅ regenerate removes only auto-generated links first
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from harvous.config import settings
from harvous.exceptions import DatabaseError, NotFoundError, ValidationError
from harvous.models.tag import NoteTag, Tag
from harvous.schemas.tag import TagCreate
from harvous.services.tag_service import TagService
from harvous.tagging import AutoTagResult, TagSuggestion

TEST_USER_ID = "user_test_123"


def _result(one=None, rowcount=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = one
    result.rowcount = rowcount
    return result


def _added(db, model):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], model)]


class TestManualTags:

    def setup_method(self):
        self.service = TagService()

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(return_value=SimpleNamespace(id=uuid4(), name="Prayer"))

        with pytest.raises(ValidationError):
            await self.service.create_tag(mock_db_session, TEST_USER_ID, TagCreate(name="prayer"))
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_uses_category_color(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(return_value=None)

        tag = await self.service.create_tag(
            mock_db_session, TEST_USER_ID, TagCreate(name=" Sermon notes ", category="biblical"),
        )

        assert tag.name == "Sermon notes"
        assert tag.color == "#28a745"
        assert tag.is_system is False

    @pytest.mark.asyncio
    async def test_create_keeps_explicit_color(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(return_value=None)

        tag = await self.service.create_tag(
            mock_db_session, TEST_USER_ID, TagCreate(name="Retreat", color="#000000"),
        )

        assert tag.color == "#000000"

    @pytest.mark.asyncio
    async def test_remove_missing_link(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            _result(one=SimpleNamespace(id=uuid4())),   # note
            _result(one=SimpleNamespace(id=uuid4())),   # tag
            _result(rowcount=0),                        # delete link
        ]

        with pytest.raises(NotFoundError):
            await self.service.remove_tag_from_note(mock_db_session, TEST_USER_ID, uuid4(), uuid4())


class TestApplyAutoTags:

    def setup_method(self):
        self.service = TagService()
        self.note_id = uuid4()

    @pytest.mark.asyncio
    async def test_creates_system_tag_and_link(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(return_value=None)
        mock_db_session.execute.return_value = _result(one=None)
        suggestion = TagSuggestion(keyword="Prayer", category="spiritual", confidence=0.85)

        applied, errors = await self.service.apply_auto_tags(
            mock_db_session, TEST_USER_ID, self.note_id, [suggestion]
        )

        assert (applied, errors) == (1, [])
        [tag] = _added(mock_db_session, Tag)
        assert tag.name == "Prayer"
        assert tag.is_system is True
        assert tag.color == "#006eff"
        assert tag.category == "spiritual"
        [link] = _added(mock_db_session, NoteTag)
        assert link.note_id == self.note_id
        assert link.is_auto_generated is True
        assert link.confidence == pytest.approx(0.85)

    @pytest.mark.asyncio
    async def test_reuses_existing_tag(self, mock_db_session):
        existing = SimpleNamespace(id=uuid4(), name="prayer")
        self.service.find_tag_by_name = AsyncMock(return_value=existing)
        mock_db_session.execute.return_value = _result(one=None)

        applied, _ = await self.service.apply_auto_tags(
            mock_db_session, TEST_USER_ID, self.note_id,
            [TagSuggestion(keyword="Prayer", category="spiritual", confidence=0.85)],
        )

        assert applied == 1
        assert _added(mock_db_session, Tag) == []
        [link] = _added(mock_db_session, NoteTag)
        assert link.tag_id == existing.id

    @pytest.mark.asyncio
    async def test_already_linked_is_skipped(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(return_value=SimpleNamespace(id=uuid4(), name="Faith"))
        mock_db_session.execute.return_value = _result(one=uuid4())

        applied, errors = await self.service.apply_auto_tags(
            mock_db_session, TEST_USER_ID, self.note_id,
            [TagSuggestion(keyword="Faith", category="spiritual", confidence=0.85)],
        )

        assert (applied, errors) == (0, [])
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_suggestion_reported(self, mock_db_session):
        self.service.find_tag_by_name = AsyncMock(side_effect=[
            IntegrityError("INSERT", {}, Exception("duplicate")),
            SimpleNamespace(id=uuid4(), name="Hope"),
        ])
        mock_db_session.execute.return_value = _result(one=None)

        applied, errors = await self.service.apply_auto_tags(
            mock_db_session, TEST_USER_ID, self.note_id,
            [
                TagSuggestion(keyword="Faith", category="spiritual", confidence=0.85),
                TagSuggestion(keyword="Hope", category="spiritual", confidence=0.85),
            ],
        )

        assert applied == 1
        assert errors == ["Faith: IntegrityError"]


class TestRegenerate:

    def setup_method(self):
        self.service = TagService()

    @pytest.mark.asyncio
    async def test_remove_auto_tags_returns_count(self, mock_db_session):
        mock_db_session.execute.return_value = _result(rowcount=3)
        assert await self.service.remove_auto_tags(mock_db_session, uuid4()) == 3

    @pytest.mark.asyncio
    async def test_remove_auto_tags_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("DELETE", {}, Exception("db down"))
        with pytest.raises(DatabaseError):
            await self.service.remove_auto_tags(mock_db_session, uuid4())

    @pytest.mark.asyncio
    async def test_regenerate_removes_then_applies(self, mock_db_session):
        note_id = uuid4()
        result = AutoTagResult(
            suggestions=[TagSuggestion(keyword="Grace", category="spiritual", confidence=0.85)],
            total_found=1,
        )
        calls = []

        async def remove(db, nid):
            calls.append("remove")
            return 2

        async def generate(*args, **kwargs):
            calls.append("generate")
            return result

        with patch.object(self.service, "remove_auto_tags", side_effect=remove), \
             patch.object(self.service, "generate_auto_tags", side_effect=generate), \
             patch.object(self.service, "apply_auto_tags", AsyncMock(return_value=(1, []))) as apply:
            out, applied, errors = await self.service.regenerate_auto_tags(
                mock_db_session, TEST_USER_ID, note_id, "Grace", "<p>grace</p>"
            )

        assert calls == ["remove", "generate"]
        assert out is result
        assert (applied, errors) == (1, [])
        apply.assert_awaited_once_with(mock_db_session, TEST_USER_ID, note_id, result.suggestions)

    @pytest.mark.asyncio
    async def test_generate_uses_configured_threshold(self, mock_db_session):
        self.service.list_tags = AsyncMock(return_value=[])

        with patch("harvous.services.tag_service.suggest_tags", return_value=AutoTagResult()) as suggest:
            await self.service.generate_auto_tags(mock_db_session, TEST_USER_ID, "t", "c")

        kwargs = suggest.call_args.kwargs
        assert kwargs["threshold"] == settings.auto_tag_confidence_threshold
        assert kwargs["max_suggestions"] == settings.auto_tag_max_suggestions
