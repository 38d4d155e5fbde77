"""AsyncTradeAssistant façade, cache snapshots and the persisted session."""

import pytest

from conftest import FakeChatService
from trade_assistant import AsyncTradeAssistant, TradeAssistant
from trade_assistant.cache import ChatCache
from trade_assistant.errors import FetchError, TransportError
from trade_assistant.models.message import SenderType
from trade_assistant.models.session import ChatSession, SessionStatus, SessionType
from trade_assistant.persistence import SessionStore


def make_client(service, tmp_path, **kwargs) -> AsyncTradeAssistant:
    kwargs.setdefault("user_id", 42)
    return AsyncTradeAssistant(api=service, session_file=tmp_path / "session.json", **kwargs)


class TestSessionStore:
    def test_round_trip(self, tmp_path):
        store = SessionStore(tmp_path / "nested" / "session.json")
        session = ChatSession(id=7, user_id=42, session_type=SessionType.SELLER_PRODUCT_INQUIRY)
        store.save(session)
        assert store.load() == session
        store.clear()
        assert store.load() is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert SessionStore(path).load() is None

    def test_cache_loads_persisted_session(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(ChatSession(id=9, user_id=42, session_type=SessionType.BUYER_PURCHASE_INQUIRY))
        cache = ChatCache(store)
        assert cache.current_session_id == 9
        assert cache.messages == ()


class TestSnapshot:
    def test_snapshot_is_detached(self):
        cache = ChatCache()
        state = cache.snapshot()
        cache.set_session(ChatSession(id=1, user_id=42, session_type=SessionType.SELLER_PRODUCT_INQUIRY))
        assert state.current_session is None
        assert cache.snapshot().current_session.id == 1

    def test_stale_finish_does_not_underflow(self):
        cache = ChatCache()
        epoch = cache.begin()
        cache.reset()
        cache.finish(epoch)
        assert not cache.is_loading
        cache.begin()
        assert cache.is_loading


class TestAsyncClient:
    @pytest.mark.asyncio
    async def test_turn_and_state(self, service, tmp_path):
        client = make_client(service, tmp_path)
        result = await client.submit_user_turn("What HS code applies?")

        state = client.state
        assert result.completed
        assert state.current_session.id == 7
        assert [m.sender_type for m in state.messages] == [SenderType.USER, SenderType.ASSISTANT]
        assert state.is_loading is False
        assert state.last_error is None

    @pytest.mark.asyncio
    async def test_session_survives_new_client_but_messages_are_refetched(self, service, tmp_path):
        first = make_client(service, tmp_path)
        await first.submit_user_turn("hello")

        second = make_client(service, tmp_path)
        assert second.current_session.id == 7
        assert second.messages == ()

        resumed = await second.resume()
        assert resumed.id == 7
        assert [m.content for m in second.messages] == ["hello", service.reply_text]
        assert service.count("create_session") == 1

    @pytest.mark.asyncio
    async def test_resume_without_saved_session(self, service, tmp_path):
        client = make_client(service, tmp_path)
        assert await client.resume() is None
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_logout_clears_everything(self, service, tmp_path):
        client = make_client(service, tmp_path)
        await client.submit_user_turn("hello")
        client.logout()

        assert client.state.current_session is None
        assert client.state.messages == ()
        assert client.context.user_id is None
        assert not (tmp_path / "session.json").exists()

    @pytest.mark.asyncio
    async def test_login_as_other_user_drops_saved_session(self, service, tmp_path):
        await make_client(service, tmp_path).ensure_session()

        client = make_client(service, tmp_path, user_id=None)
        client.login(43)
        assert client.current_session is None
        session = await client.ensure_session()
        assert session.user_id == 43

    @pytest.mark.asyncio
    async def test_saved_session_of_other_user_is_not_reused(self, service, tmp_path):
        await make_client(service, tmp_path).submit_user_turn("hello")

        client = make_client(service, tmp_path, user_id=43, session_type=SessionType.BUYER_PURCHASE_INQUIRY)
        assert client.current_session is None
        result = await client.submit_user_turn("buy?")

        session = service.sessions[result.session_id]
        assert result.session_id == 8
        assert session.user_id == 43
        assert session.session_type == SessionType.BUYER_PURCHASE_INQUIRY
        assert [m.content for m in client.messages] == ["buy?", service.reply_text]

    @pytest.mark.asyncio
    async def test_saved_session_of_other_purpose_is_not_reused(self, service, tmp_path):
        await make_client(service, tmp_path).ensure_session()

        client = make_client(service, tmp_path, session_type="BUYER_PURCHASE_INQUIRY")
        assert client.current_session is None
        assert not (tmp_path / "session.json").exists()
        session = await client.ensure_session()
        assert session.session_type == SessionType.BUYER_PURCHASE_INQUIRY
        assert service.count("create_session") == 2

    @pytest.mark.asyncio
    async def test_switching_purpose_clears_first(self, service, tmp_path):
        client = make_client(service, tmp_path)
        seller = await client.ensure_session()
        assert seller.session_type == SessionType.SELLER_PRODUCT_INQUIRY

        buyer = await client.start_conversation(SessionType.BUYER_PURCHASE_INQUIRY, '{"productId": 3}')
        assert buyer.id != seller.id
        assert buyer.session_type == SessionType.BUYER_PURCHASE_INQUIRY
        assert buyer.session_data == '{"productId": 3}'

        again = await client.start_conversation("BUYER_PURCHASE_INQUIRY")
        assert again.id == buyer.id
        assert service.count("create_session") == 2

    @pytest.mark.asyncio
    async def test_load_existing_refetches_messages(self, service, tmp_path):
        other = await service.create_session(42, SessionType.SELLER_PRODUCT_INQUIRY, "ko")
        service.add_message(other.id, SenderType.USER, "old question")

        client = make_client(service, tmp_path)
        session = await client.load_existing(other.id)
        assert session.id == other.id
        assert [m.content for m in client.messages] == ["old question"]

    @pytest.mark.asyncio
    async def test_update_status_and_active_list(self, service, tmp_path):
        client = make_client(service, tmp_path)
        await client.ensure_session()
        assert [s.id for s in await client.list_active_sessions()] == [7]

        closed = await client.update_status(SessionStatus.CLOSED)
        assert closed.status == SessionStatus.CLOSED
        assert client.current_session.status == SessionStatus.CLOSED
        assert await client.list_active_sessions() == []

    @pytest.mark.asyncio
    async def test_refresh_failure_surfaces(self, service, tmp_path):
        client = make_client(service, tmp_path)
        await client.ensure_session()
        service.fail["list_all_messages"] = TransportError("HTTP 502", status_code=502)
        with pytest.raises(FetchError):
            await client.refresh_messages()


class TestSyncClient:
    def test_blocking_turn(self, tmp_path):
        service = FakeChatService()
        client = TradeAssistant(api=service, user_id=42, persist_session=False)
        try:
            result = client.submit_user_turn("What HS code applies?")
            assert result.completed
            assert len(client.messages) == 2
            client.logout()
            assert client.state.current_session is None
        finally:
            client.close()
