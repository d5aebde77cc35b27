def _seed(client, words):
    for english, target in words:
        client.post("/api/vocab", json={"languageCode": "ar", "english": english, "target": target})


def test_full_review_session(client):
    _seed(client, [("cat", "قطة"), ("dog", "كلب")])

    started = client.post("/api/sessions", json={"lang": "ar"})
    assert started.status_code == 200
    session = started.json()
    assert session["state"] == "loaded"
    assert session["total"] == 2
    assert session["cardType"] == "all"
    sid = session["sessionId"]

    for quality in (5, 1):
        presented = client.get(f"/api/sessions/{sid}/next").json()
        assert "back" not in presented["card"]
        back = client.post(f"/api/sessions/{sid}/reveal").json()["back"]
        assert back in ("قطة", "كلب")
        graded = client.post(f"/api/sessions/{sid}/grade", json={"quality": quality}).json()
        assert graded["scheduling"]["interval"] == 1

    done = client.get(f"/api/sessions/{sid}/next").json()
    assert done["card"] is None
    assert done["state"] == "complete"
    assert (done["reviewed"], done["correct"], done["incorrect"], done["accuracy"]) == (2, 1, 1, 50)

    stats = client.get("/api/flashcards/stats").json()
    assert stats["reviewedToday"] == 2


def test_grade_out_of_turn_is_conflict(client):
    _seed(client, [("cat", "قطة")])
    sid = client.post("/api/sessions", json={}).json()["sessionId"]

    response = client.post(f"/api/sessions/{sid}/grade", json={"quality": 4})
    assert response.status_code == 409
    assert response.json()["error"] == "invalid_session_state"


def test_invalid_grade_in_session(client):
    _seed(client, [("cat", "قطة")])
    sid = client.post("/api/sessions", json={}).json()["sessionId"]
    client.get(f"/api/sessions/{sid}/next")

    response = client.post(f"/api/sessions/{sid}/grade", json={"quality": -1})
    assert response.status_code == 400
    assert client.get(f"/api/sessions/{sid}").json()["state"] == "presenting"


def test_restart_and_cancel(client):
    _seed(client, [("cat", "قطة")])
    sid = client.post("/api/sessions", json={"cardType": "vocab"}).json()["sessionId"]

    restarted = client.post(f"/api/sessions/{sid}/restart", json={"cardType": "conjugation"}).json()
    assert restarted["cardType"] == "conjugation"
    assert restarted["total"] == 0

    assert client.delete(f"/api/sessions/{sid}").json() == {"status": "cancelled"}
    assert client.get(f"/api/sessions/{sid}").status_code == 404
