"""Integration tests for exercise listing and admin management."""

EXERCISE = {
    "title": "Rebuttal",
    "description": "Answer opposing counsel.",
    "demoVideoUrl": "https://v/demo2.mp4",
    "professionalAnswerUrl": "https://v/pro2.mp4",
    "pdfUrl": "https://v/brief.pdf",
    "order": 2,
}


async def test_requires_authentication(async_client):
    resp = await async_client.get("/api/exercises")
    assert resp.status_code == 401


async def test_list_and_get(async_client, user_headers, exercise_id, admin_headers):
    await async_client.post("/api/admin/exercises", headers=admin_headers, json=EXERCISE)

    resp = await async_client.get("/api/exercises", headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert [e["title"] for e in data] == ["Opening Submissions", "Rebuttal"]
    assert data[0]["switchTimes"] == [12.5]
    assert data[1]["switchTimes"] == []
    assert data[1]["pdfUrl"] == "https://v/brief.pdf"

    resp = await async_client.get(f"/api/exercises/{exercise_id}", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["professionalAnswerUrl"] == "https://v/pro.mp4"


async def test_get_missing(async_client, user_headers):
    resp = await async_client.get("/api/exercises/999", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == "EXERCISE_NOT_FOUND"


async def test_admin_only_mutations(async_client, user_headers):
    resp = await async_client.post("/api/admin/exercises", headers=user_headers, json=EXERCISE)
    assert resp.status_code == 403


async def test_update(async_client, admin_headers, exercise_id):
    body = {**EXERCISE, "title": "Opening (revised)", "order": 1, "switchTimes": [5, 9.5]}
    resp = await async_client.put(
        f"/api/admin/exercises/{exercise_id}", headers=admin_headers, json=body
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Opening (revised)"
    assert resp.json()["switchTimes"] == [5.0, 9.5]
    assert resp.json()["updatedAt"] is not None


async def test_delete_removes_progress(async_client, admin_headers, user_headers, exercise_id):
    """Deleting an exercise also removes every trainee's progress for it."""
    await async_client.post(
        f"/api/progress/{exercise_id}",
        headers=user_headers,
        json={"videoUrl": "/api/video/videos%2F1_1.webm", "completed": True},
    )

    resp = await async_client.delete(f"/api/admin/exercises/{exercise_id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Exercise deleted successfully"

    resp = await async_client.get("/api/progress", headers=user_headers)
    assert resp.json() == []
    resp = await async_client.get(f"/api/exercises/{exercise_id}", headers=user_headers)
    assert resp.status_code == 404
