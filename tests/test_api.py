from core.safety import SAFETY_MESSAGE


def test_root_is_plain_text(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.text.startswith("Shyam backend up.")


def test_health_reports_index_and_providers(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {
        "status": "degraded",
        "indexed_documents": 0,
        "vocabulary_size": 0,
        "providers": ["openai"],
    }

    client.post("/api/index")
    assert client.get("/health").json()["status"] == "healthy"


def test_index_endpoint(client):
    r = client.post("/api/index")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "indexed": 3}


def test_index_without_documents_is_client_error(client, service, knowledge_dir):
    client.post("/api/index")
    for path in knowledge_dir.iterdir():
        path.unlink()

    r = client.post("/api/index")
    assert r.status_code == 400
    assert "No knowledge files found" in r.json()["detail"]
    assert service.stats()["indexed_documents"] == 3


def test_chat_reply(client):
    client.post("/api/index")
    r = client.post("/api/chat", json={"message": "I cannot sleep"})
    assert r.status_code == 200
    assert r.json() == {"reply": "Thank you for sharing that with me."}


def test_chat_emergency(client, provider):
    r = client.post("/api/chat", json={"message": "I want to die"})
    assert r.status_code == 200
    assert r.json() == {"reply": SAFETY_MESSAGE, "emergency": True}
    assert provider.call_count == 0


def test_chat_booking_link(client):
    r = client.post("/api/chat", json={"message": "I'd like to book a session"})
    body = r.json()
    assert "emergency" not in body
    assert body["booking"] == {"url": "https://book.example/shyam"}


def test_chat_rejects_empty_message(client, provider):
    assert client.post("/api/chat", json={"message": ""}).status_code == 400
    assert client.post("/api/chat", json={}).status_code == 400
    assert client.post("/api/chat", content=b"not json",
                       headers={"Content-Type": "application/json"}).status_code == 400
    assert provider.call_count == 0


def test_book_endpoint(client, service):
    r = client.post("/api/book", json={"name": "Asha", "phone": "9999999999"})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["ref"].startswith("BK")

    second = client.post("/api/book", json={"name": "Asha", "phone": "9999999999"}).json()
    assert second["ref"] != body["ref"]
    assert len(service.bookings.load()) == 2


def test_book_requires_name_and_phone(client):
    r = client.post("/api/book", json={"name": "Asha"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Provide name and phone"


def test_book_persistence_failure_is_server_error(client, service):
    service.bookings.path.write_text("{broken", encoding="utf-8")
    r = client.post("/api/book", json={"name": "Asha", "phone": "9999999999"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Booking failed"


def test_book_with_non_list_file_is_server_error(client, service):
    service.bookings.path.write_text("{}", encoding="utf-8")
    r = client.post("/api/book", json={"name": "Asha", "phone": "9999999999"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Booking failed"


def test_book_accepts_numeric_phone(client, service):
    r = client.post("/api/book", json={"name": "Asha", "phone": 9999999999})
    assert r.status_code == 200
    assert service.bookings.load()[0]["phone"] == "9999999999"


def test_chat_coerces_scalar_message(client):
    r = client.post("/api/chat", json={"message": 5})
    assert r.status_code == 200
    assert r.json() == {"reply": "Thank you for sharing that with me."}


def test_chat_rejects_non_scalar_message(client):
    assert client.post("/api/chat", json={"message": ["hi"]}).status_code == 400


def test_chat_padded_booking_message_includes_link(client):
    r = client.post("/api/chat", json={"message": "  I'd like to book a session  "})
    assert r.json()["booking"] == {"url": "https://book.example/shyam"}


def test_index_with_undecodable_file(client, knowledge_dir):
    (knowledge_dir / "notes.txt").write_bytes(b"calm \xff breathing")
    r = client.post("/api/index")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "indexed": 4}
