"""Integration tests for the group formation API."""

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.mark.asyncio
async def test_group_lifecycle(client: AsyncClient, classroom, assignment_id, auth_headers):
    """Create, join, transfer, leave and lock a group over HTTP."""
    leader = auth_headers("student-1")
    member = auth_headers("student-2")
    teacher = auth_headers("teacher-1", role="teacher")

    # 1. Create group
    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "Rocketeers"}, headers=leader
    )
    assert response.status_code == 201
    data = response.json()
    group_id = data["id"]
    invite_code = data["invite_code"]
    assert data["leader_id"] == "student-1"
    assert data["status"] == "FORMING"
    assert data["member_count"] == 1
    assert data["members"][0]["role"] == "LEADER"
    assert data["members"][0]["student_name"] == "Student 1"

    # 2. Join by invite code
    response = await client.post(
        f"{API}/groups/join-by-code", json={"invite_code": invite_code.lower()}, headers=member
    )
    assert response.status_code == 200
    assert [m["student_id"] for m in response.json()["members"]] == ["student-1", "student-2"]

    # 3. Join by ID
    response = await client.post(
        f"{API}/groups/{group_id}/join", headers=auth_headers("student-3")
    )
    assert response.status_code == 200
    assert response.json()["member_count"] == 3

    # 4. Transfer leadership
    response = await client.post(
        f"{API}/groups/{group_id}/transfer-leader",
        json={"new_leader_id": "student-3"},
        headers=leader,
    )
    assert response.status_code == 200
    assert response.json()["leader_id"] == "student-3"

    # 5. Member leaves
    response = await client.post(f"{API}/groups/{group_id}/leave", headers=member)
    assert response.status_code == 200
    body = response.json()
    assert body["dissolved"] is False
    roles = {m["student_id"]: m["role"] for m in body["group"]["members"]}
    assert roles == {"student-1": "MEMBER", "student-3": "LEADER"}

    # 6. Teacher locks
    response = await client.post(f"{API}/groups/{group_id}/lock", headers=teacher)
    assert response.status_code == 200
    assert response.json()["status"] == "LOCKED"

    # 7. Joining a locked group is a conflict
    response = await client.post(f"{API}/groups/{group_id}/join", headers=member)
    assert response.status_code == 409
    assert response.json()["error"] == "group_locked"


@pytest.mark.asyncio
async def test_error_responses(client: AsyncClient, classroom, assignment_id, auth_headers):
    """Domain errors map to status codes with a stable error body."""
    leader = auth_headers("student-1")
    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "Alpha"}, headers=leader
    )
    group_id = response.json()["id"]

    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "Beta"}, headers=leader
    )
    assert response.status_code == 409
    assert response.json() == {
        "error": "already_grouped",
        "kind": "conflict",
        "detail": "Student already belongs to a group for this assignment",
    }

    response = await client.post(f"{API}/groups/missing/join", headers=auth_headers("student-2"))
    assert response.status_code == 404
    assert response.json()["error"] == "group_not_found"

    response = await client.post(
        f"{API}/groups/join-by-code", json={"invite_code": "SL-0000"}, headers=leader
    )
    assert response.status_code == 404
    assert response.json()["error"] == "invite_code_not_found"

    response = await client.post(
        f"{API}/groups/{group_id}/join", headers=auth_headers("outsider-1")
    )
    assert response.status_code == 403
    assert response.json()["error"] == "not_in_class"

    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "   "}, headers=auth_headers("student-4")
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_authentication_and_roles(client: AsyncClient, classroom, assignment_id, auth_headers):
    response = await client.get(f"{API}/assignments/{assignment_id}/groups")
    assert response.status_code == 401

    response = await client.get(
        f"{API}/assignments/{assignment_id}/groups",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401

    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups",
        json={"name": "Teachers"},
        headers=auth_headers("teacher-1", role="teacher"),
    )
    assert response.status_code == 403

    response = await client.post(
        f"{API}/assignments/{assignment_id}/auto-assign", headers=auth_headers("student-1")
    )
    assert response.status_code == 403

    response = await client.post(
        f"{API}/assignments/{assignment_id}/auto-assign",
        headers=auth_headers("teacher-2", role="teacher"),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "not_owner"


@pytest.mark.asyncio
async def test_listing_and_my_group(client: AsyncClient, classroom, assignment_id, auth_headers):
    await client.post(
        f"{API}/assignments/{assignment_id}/groups",
        json={"name": "Alpha"},
        headers=auth_headers("student-2"),
    )

    response = await client.get(
        f"{API}/assignments/{assignment_id}/groups",
        headers=auth_headers("teacher-1", role="teacher"),
    )
    assert response.status_code == 200
    data = response.json()
    assert [g["name"] for g in data["groups"]] == ["Alpha"]
    assert [s["id"] for s in data["unassigned_students"]][:2] == ["student-1", "student-3"]
    assert data["group_config"]["min_size"] == 2
    assert data["group_config"]["max_size"] == 4
    assert data["group_config"]["ungrouped_policy"] == "TEACHER_ASSIGN"

    response = await client.get(
        f"{API}/assignments/{assignment_id}/my-group", headers=auth_headers("student-2")
    )
    assert response.status_code == 200
    data = response.json()
    assert data["my_group"]["name"] == "Alpha"
    assert data["stats"] == {"total_students": 7, "assigned_count": 1}
    assert data["assignment"]["class_name"] == "Physics 101"

    response = await client.get(
        f"{API}/assignments/{assignment_id}/my-group", headers=auth_headers("student-1")
    )
    assert response.json()["my_group"] is None


@pytest.mark.asyncio
async def test_auto_assign_endpoint(client: AsyncClient, classroom, assignment_id, auth_headers):
    teacher = auth_headers("teacher-1", role="teacher")

    response = await client.post(
        f"{API}/assignments/{assignment_id}/auto-assign", json={"preferred_size": 3}, headers=teacher
    )
    assert response.status_code == 200
    data = response.json()
    assert data["assigned_count"] == 7
    assert data["target_size"] == 3
    assert len(data["created_group_ids"]) == 3
    assert data["undersized_group_ids"] == data["created_group_ids"][2:]
    assert data["message"] == "Auto-assignment completed, 7 students assigned"

    response = await client.post(f"{API}/assignments/{assignment_id}/auto-assign", headers=teacher)
    assert response.status_code == 200
    assert response.json()["message"] == "All students already have a group"

    response = await client.post(
        f"{API}/assignments/{assignment_id}/auto-assign", json={"preferred_size": 1}, headers=teacher
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_endpoint(client: AsyncClient, classroom, assignment_id, auth_headers):
    leader = auth_headers("student-1")
    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "Alpha"}, headers=leader
    )
    group_id = response.json()["id"]
    payload = {
        "assignment_id": assignment_id,
        "files": ["uploads/report.pdf"],
        "labor_division": [
            {"member_id": "student-1", "member_name": "Student 1", "task": "All", "contribution_percent": 100}
        ],
    }

    response = await client.post(f"{API}/groups/{group_id}/submit", json=payload, headers=leader)
    assert response.status_code == 409
    assert response.json()["error"] == "size_below_minimum"

    await client.post(f"{API}/groups/{group_id}/join", headers=auth_headers("student-2"))
    response = await client.post(f"{API}/groups/{group_id}/submit", json=payload, headers=leader)
    assert response.status_code == 200
    data = response.json()
    assert data["group_id"] == group_id
    assert sorted(s["student_id"] for s in data["submissions"]) == ["student-1", "student-2"]

    response = await client.get(f"{API}/groups/{group_id}", headers=leader)
    assert response.json()["status"] == "SUBMITTED"


@pytest.mark.asyncio
async def test_messages_endpoint(client: AsyncClient, classroom, assignment_id, auth_headers):
    leader = auth_headers("student-1")
    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups", json={"name": "Alpha"}, headers=leader
    )
    group_id = response.json()["id"]

    response = await client.post(
        f"{API}/groups/{group_id}/messages", json={"content": "Hello team"}, headers=leader
    )
    assert response.status_code == 201
    posted = response.json()
    assert posted["type"] == "TEXT"
    assert posted["sender_name"] == "Student 1"

    response = await client.get(f"{API}/groups/{group_id}/messages", headers=leader)
    assert response.status_code == 200
    data = response.json()
    assert [m["type"] for m in data["messages"]] == ["SYSTEM", "TEXT"]
    assert data["total"] == 2

    response = await client.get(
        f"{API}/groups/{group_id}/messages",
        params={"after_id": posted["id"]},
        headers=auth_headers("teacher-1", role="teacher"),
    )
    assert response.json()["messages"] == []

    response = await client.get(
        f"{API}/groups/{group_id}/messages", headers=auth_headers("student-2")
    )
    assert response.status_code == 403
    assert response.json()["error"] == "message_access_denied"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_group_visible_only_inside_the_class(
    client: AsyncClient, classroom, assignment_id, auth_headers
):
    response = await client.post(
        f"{API}/assignments/{assignment_id}/groups",
        json={"name": "Private"},
        headers=auth_headers("student-1"),
    )
    group_id = response.json()["id"]

    response = await client.get(f"{API}/groups/{group_id}", headers=auth_headers("student-5"))
    assert response.status_code == 200
    assert response.json()["invite_code"].startswith("SL-")

    response = await client.get(
        f"{API}/groups/{group_id}", headers=auth_headers("teacher-1", role="teacher")
    )
    assert response.status_code == 200

    response = await client.get(f"{API}/groups/{group_id}", headers=auth_headers("outsider-1"))
    assert response.status_code == 403
    assert response.json()["error"] == "not_in_class"
    assert "invite_code" not in response.json()

    response = await client.get(
        f"{API}/groups/{group_id}", headers=auth_headers("teacher-2", role="teacher")
    )
    assert response.status_code == 403
    assert response.json()["error"] == "not_owner"
