import asyncio
import logging
from fastapi import FastAPI
from unittest.mock import AsyncMock, MagicMock
import pytest
from storefront.main import lifespan


@pytest.fixture
def mock_rabbit(monkeypatch):
    rabbit = MagicMock()
    rabbit.connect = AsyncMock()
    rabbit.disconnect = AsyncMock()
    rabbit.exchange_name = "test"
    monkeypatch.setattr("storefront.main.rabbitmq", rabbit)
    return rabbit


@pytest.fixture
def consumer(monkeypatch):
    consumer = AsyncMock()
    monkeypatch.setattr("storefront.main.start_consumer", consumer)
    return consumer


def _run(app):
    async def run_lifespan():
        async with lifespan(app):
            await asyncio.sleep(0)
    asyncio.run(run_lifespan())


def test_lifespan_database_ok(monkeypatch, mock_rabbit, consumer):
    mock_conn = MagicMock()
    mock_engine = MagicMock()
    mock_engine.connect.return_value.__enter__.return_value = mock_conn
    init_db = MagicMock()
    monkeypatch.setattr("storefront.main.engine", mock_engine)
    monkeypatch.setattr("storefront.main.init_db", init_db)

    _run(FastAPI())

    mock_engine.connect.assert_called()
    mock_conn.execute.assert_called_once()
    init_db.assert_called_once()
    mock_rabbit.connect.assert_awaited()
    consumer.assert_called_once()
    assert consumer.call_args.kwargs["patterns"] == ["customer.deleted"]
    mock_rabbit.disconnect.assert_awaited()


def test_lifespan_database_fail(monkeypatch, caplog, mock_rabbit, consumer):
    mock_engine = MagicMock()
    mock_engine.connect.side_effect = Exception("fail")
    init_db = MagicMock()
    monkeypatch.setattr("storefront.main.engine", mock_engine)
    monkeypatch.setattr("storefront.main.init_db", init_db)

    with caplog.at_level(logging.ERROR):
        _run(FastAPI())

    assert "database connectivity check failed" in caplog.text
    init_db.assert_not_called()
    # the broker is still brought up
    mock_rabbit.connect.assert_awaited()


def test_lifespan_rabbitmq_fail(monkeypatch, caplog, mock_rabbit, consumer):
    mock_engine = MagicMock()
    mock_engine.connect.return_value.__enter__.return_value = MagicMock()
    monkeypatch.setattr("storefront.main.engine", mock_engine)
    monkeypatch.setattr("storefront.main.init_db", lambda: None)
    mock_rabbit.connect = AsyncMock(side_effect=Exception("rabbit fail"))

    with caplog.at_level(logging.ERROR):
        _run(FastAPI())

    assert "RabbitMQ initialisation failed" in caplog.text
    consumer.assert_not_called()
    mock_rabbit.disconnect.assert_awaited()


def _healthy_db(monkeypatch):
    mock_engine = MagicMock()
    mock_engine.connect.return_value.__enter__.return_value = MagicMock()
    monkeypatch.setattr("storefront.main.engine", mock_engine)
    monkeypatch.setattr("storefront.main.init_db", lambda: None)


def test_lifespan_logs_consumer_failure(monkeypatch, caplog, mock_rabbit):
    _healthy_db(monkeypatch)
    monkeypatch.setattr(
        "storefront.main.start_consumer", AsyncMock(side_effect=RuntimeError("queue declare failed"))
    )

    async def run_lifespan():
        async with lifespan(FastAPI()):
            for _ in range(3):
                await asyncio.sleep(0)

    with caplog.at_level(logging.ERROR):
        asyncio.run(run_lifespan())

    assert "consumer stopped: queue declare failed" in caplog.text
    mock_rabbit.disconnect.assert_awaited()


def test_lifespan_cancels_consumer_before_disconnect(monkeypatch, mock_rabbit):
    _healthy_db(monkeypatch)
    events = []

    async def consume_forever(*args, **kwargs):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            events.append("consumer cancelled")
            raise

    monkeypatch.setattr("storefront.main.start_consumer", consume_forever)
    mock_rabbit.disconnect = AsyncMock(side_effect=lambda: events.append("disconnected"))

    _run(FastAPI())

    assert events == ["consumer cancelled", "disconnected"]
