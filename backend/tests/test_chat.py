import pytest

from app.services import knowledge_base
from app.services.chat_service import ChatService

from conftest import bearer


@pytest.fixture
def model(monkeypatch):
    """Replaces the Gemini call; records prompts and the history it was given."""
    calls = []

    def complete(prompt, history=None):
        calls.append({"prompt": prompt, "history": list(history or [])})
        return f"reply {len(calls)}"

    monkeypatch.setattr(ChatService, "_complete", staticmethod(complete))
    return calls


def test_empty_message_rejected(client, model):
    for message in ("", "   ", None, 42):
        response = client.post("/api/chatbot/chat", json={"message": message})
        assert response.status_code == 400
    assert model == []


def test_unconfigured_model_is_upstream_error(client):
    response = client.post("/api/chatbot/chat", json={"message": "What is an MMF?"})

    assert response.status_code == 502
    assert response.json()["error_code"] == "upstream_error"


def test_history_persists_per_session(client, model):
    first = client.post("/api/chatbot/chat", json={"message": "Tell me about money market funds", "sessionId": "s1"})
    second = client.post("/api/chatbot/chat", json={"message": "And the minimum?", "sessionId": "s1"})
    other = client.post("/api/chatbot/chat", json={"message": "Hello"}, headers={"X-Session-Id": "s2"})

    assert first.json()["response"] == "reply 1"
    assert second.json()["sessionId"] == "s1"
    assert other.json()["sessionId"] == "s2"
    assert model[0]["history"] == []
    assert [m["role"] for m in model[1]["history"]] == ["user", "model"]
    assert model[1]["history"][0]["content"] == "Tell me about money market funds"
    assert model[2]["history"] == []
    assert "MONEY MARKET FUNDS IN KENYA" in model[0]["prompt"]


def test_reset_clears_history(client, model):
    client.post("/api/chatbot/chat", json={"message": "Hi", "sessionId": "s1"})

    response = client.post("/api/chatbot/reset", json={"sessionId": "s1"})
    client.post("/api/chatbot/chat", json={"message": "Hi again", "sessionId": "s1"})

    assert response.status_code == 200
    assert model[-1]["history"] == []


def test_delete_session(client, model):
    client.post("/api/chatbot/chat", json={"message": "Hi", "sessionId": "s1"})

    default = client.request("DELETE", "/api/chatbot/session", json={"sessionId": "default"})
    unknown = client.request("DELETE", "/api/chatbot/session", json={"sessionId": "nope"})
    deleted = client.request("DELETE", "/api/chatbot/session", json={"sessionId": "s1"})
    again = client.request("DELETE", "/api/chatbot/session", headers={"X-Session-Id": "s1"})

    assert default.status_code == 400
    assert unknown.status_code == 404
    assert deleted.status_code == 200
    assert again.status_code == 404


def test_owned_session_hidden_from_others(client, model, register_user):
    token = register_user()
    client.post("/api/chatbot/chat", json={"message": "Hi", "sessionId": "mine"}, headers=bearer(token))

    response = client.post("/api/chatbot/chat", json={"message": "Hi", "sessionId": "mine"})

    assert response.status_code == 404


def test_financial_advice_includes_profile(client, model):
    response = client.post("/api/chatbot/financial-advice", json={
        "question": "Should I buy treasury bonds?",
        "userProfile": {"riskTolerance": "low", "investmentAmount": 50000, "timeHorizon": "5 years"},
    })

    assert response.status_code == 200
    assert response.json()["query"] == "Should I buy treasury bonds?"
    prompt = model[0]["prompt"]
    assert "Risk Tolerance: low" in prompt
    assert "Investment Amount: KES 50000" in prompt
    assert "GOVERNMENT SECURITIES" in prompt


def test_financial_advice_requires_query(client, model):
    assert client.post("/api/chatbot/financial-advice", json={}).status_code == 400


def test_chatbot_health(client):
    response = client.get("/api/chatbot/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_knowledge_base_search():
    assert "KENYAN STOCK MARKET" in knowledge_base.search("Is Safaricom a good stock?")
    assert "KENYAN INSURANCE" in knowledge_base.search("medical insurance cover")
    assert knowledge_base.search("what's the weather") == ""


def test_default_session_stays_shared_after_signed_in_use(client, model, register_user):
    token = register_user()

    signed_in = client.post("/api/chatbot/chat", json={"message": "Hi"}, headers=bearer(token))
    anonymous = client.post("/api/chatbot/chat", json={"message": "Hello"})

    assert signed_in.json()["sessionId"] == "default"
    assert anonymous.status_code == 200
    assert [m["content"] for m in model[1]["history"]] == ["Hi", "reply 1"]
