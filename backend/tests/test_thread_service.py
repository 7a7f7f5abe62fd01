"""
Harvous Backend - Thread and Space Service Unit Tests
======================================================

What we test:
    ✅ Thread defaults and space ownership check
    ✅ Pin toggling
    ✅ Partial updates never null out required fields
    ✅ Deleting a space detaches threads and notes before the delete
"""

from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from harvous.exceptions import NotFoundError
from harvous.models.space import DEFAULT_SPACE_COLOR
from harvous.models.thread import DEFAULT_THREAD_COLOR
from harvous.schemas.thread import SpaceCreate, ThreadCreate, ThreadUpdate
from harvous.services.thread_service import SpaceService, ThreadService

TEST_USER_ID = "user_test_123"


def _owned(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    return result


class TestThreadService:

    def setup_method(self):
        self.service = ThreadService()

    @pytest.mark.asyncio
    async def test_create_defaults(self, mock_db_session):
        thread = await self.service.create_thread(
            mock_db_session, TEST_USER_ID, ThreadCreate(title="  Romans study "),
        )

        assert thread.title == "Romans study"
        assert thread.color == DEFAULT_THREAD_COLOR
        assert thread.space_id is None
        mock_db_session.execute.assert_not_awaited()
        mock_db_session.add.assert_called_once_with(thread)

    @pytest.mark.asyncio
    async def test_create_in_foreign_space(self, mock_db_session):
        mock_db_session.execute.return_value = _owned(None)

        with pytest.raises(NotFoundError):
            await self.service.create_thread(
                mock_db_session, TEST_USER_ID, ThreadCreate(title="x", space_id=uuid4()),
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_toggle_pin(self, mock_db_session):
        thread = SimpleNamespace(id=uuid4(), is_pinned=False)
        mock_db_session.execute.return_value = _owned(thread)

        await self.service.toggle_pin(mock_db_session, TEST_USER_ID, thread.id)
        assert thread.is_pinned is True
        await self.service.toggle_pin(mock_db_session, TEST_USER_ID, thread.id)
        assert thread.is_pinned is False

    @pytest.mark.asyncio
    async def test_update_skips_null_title(self, mock_db_session):
        thread = SimpleNamespace(id=uuid4(), title="Old", subtitle="sub", updated_at=None)
        mock_db_session.execute.return_value = _owned(thread)

        await self.service.update_thread(
            mock_db_session, TEST_USER_ID, thread.id, ThreadUpdate(title=None, subtitle=None),
        )

        assert thread.title == "Old"
        assert thread.subtitle is None
        assert thread.updated_at is not None

    @pytest.mark.asyncio
    async def test_delete_thread_removes_links_first(self, mock_db_session):
        thread = SimpleNamespace(id=uuid4())
        mock_db_session.execute.return_value = _owned(thread)

        await self.service.delete_thread(mock_db_session, TEST_USER_ID, thread.id)

        # ownership lookup + note_threads delete
        assert mock_db_session.execute.await_count == 2
        mock_db_session.delete.assert_awaited_once_with(thread)


class TestSpaceService:

    @pytest.mark.asyncio
    async def test_create_default_color(self, mock_db_session):
        space = await SpaceService().create_space(mock_db_session, TEST_USER_ID, SpaceCreate(title="Church"))
        assert space.color == DEFAULT_SPACE_COLOR

    @pytest.mark.asyncio
    async def test_delete_detaches_threads_and_notes(self, mock_db_session):
        space = SimpleNamespace(id=uuid4())
        mock_db_session.execute.return_value = _owned(space)

        await SpaceService().delete_space(mock_db_session, TEST_USER_ID, space.id)

        # ownership lookup + threads update + notes update
        assert mock_db_session.execute.await_count == 3
        mock_db_session.delete.assert_awaited_once_with(space)
