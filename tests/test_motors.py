"""
Integration tests for the motor catalogue endpoints.
Covers create/fetch equality, pagination clamping, filters, partial updates and deletes.
"""

import pytest


async def create_motors(client, count, **overrides):
    created = []
    for i in range(count):
        payload = {
            "motor_slug": f"motor-{i}",
            "motor_name": f"Motor {i}",
            "motor_type": "matic",
            "price_per_day": 50000 + i * 1000,
            **overrides,
        }
        response = await client.post("/api/motors", json=payload)
        assert response.status_code == 201, response.text
        created.append(response.json())
    return created


# ============================================================================
# POST /api/motors and GET /api/motors/{id}
# ============================================================================

@pytest.mark.asyncio
async def test_create_then_fetch_matches_payload(client, sample_motor):
    """A fetched motor equals the submitted payload apart from its id and defaulted availability."""
    response = await client.post("/api/motors", json=sample_motor)

    assert response.status_code == 201
    created = response.json()
    assert isinstance(created["motor_id"], int)

    fetched = (await client.get(f"/api/motors/{created['motor_id']}")).json()
    for field, value in sample_motor.items():
        assert fetched[field] == value
    assert fetched["available"] is True


@pytest.mark.asyncio
async def test_create_keeps_explicit_availability(client, sample_motor):
    sample_motor["available"] = False
    response = await client.post("/api/motors", json=sample_motor)

    assert response.json()["available"] is False


@pytest.mark.asyncio
async def test_create_missing_required_field(client, sample_motor):
    del sample_motor["motor_name"]
    response = await client.post("/api/motors", json=sample_motor)

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Missing motor_name"


@pytest.mark.asyncio
async def test_create_invalid_price(client, sample_motor):
    sample_motor["price_per_day"] = "murah"
    response = await client.post("/api/motors", json=sample_motor)

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Invalid price_per_day format"


@pytest.mark.asyncio
async def test_create_price_beyond_integer_column(client, sample_motor):
    sample_motor["price_per_day"] = 2**31
    response = await client.post("/api/motors", json=sample_motor)

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Invalid price_per_day format"


@pytest.mark.asyncio
async def test_get_motor_not_found(client):
    response = await client.get("/api/motors/9999")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "MOTOR_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_motor_non_numeric_id(client):
    response = await client.get("/api/motors/abc")

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_INPUT"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "delete"])
async def test_oversized_motor_id_is_bad_input(client, method):
    """Ids past the 32-bit column range are a 400, not a server error."""
    response = await getattr(client, method)("/api/motors/100000000000000000000")

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_INPUT"
    assert response.json()["detail"]["message"] == "Invalid motor_id format"


@pytest.mark.asyncio
async def test_update_oversized_motor_id_is_bad_input(client):
    response = await client.put("/api/motors/100000000000000000000", json={"motor_name": "Ghost"})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_motors_liveness(client):
    response = await client.get("/api/motors/test")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["message"] == "Motors API is working"


# ============================================================================
# GET /api/motors - pagination and filters
# ============================================================================

@pytest.mark.asyncio
async def test_list_motors_empty(client):
    response = await client.get("/api/motors")

    assert response.status_code == 200
    assert response.json() == {"motors": [], "total": 0, "page": 1, "limit": 10}


@pytest.mark.asyncio
async def test_list_motors_default_pagination(client):
    await create_motors(client, 12)

    data = (await client.get("/api/motors")).json()

    assert data["total"] == 12
    assert data["page"] == 1
    assert data["limit"] == 10
    assert len(data["motors"]) == 10
    assert [m["motor_slug"] for m in data["motors"]] == [f"motor-{i}" for i in range(10)]


@pytest.mark.asyncio
async def test_list_motors_second_page(client):
    await create_motors(client, 12)

    data = (await client.get("/api/motors?page=2&limit=5")).json()

    assert data["page"] == 2
    assert [m["motor_slug"] for m in data["motors"]] == [f"motor-{i}" for i in range(5, 10)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query, expected_page, expected_limit",
    [
        ("page=0&limit=0", 1, 1),
        ("page=-3&limit=1000", 1, 100),
        ("limit=-5", 1, 1),
    ],
)
async def test_list_motors_clamps_paging(client, query, expected_page, expected_limit):
    """page is floored at 1 and limit clamped into [1, 100]; items never exceed limit."""
    await create_motors(client, 3)

    data = (await client.get(f"/api/motors?{query}")).json()

    assert data["page"] == expected_page
    assert data["limit"] == expected_limit
    assert 0 <= len(data["motors"]) <= data["limit"]
    assert data["total"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query, field",
    [("page=10000000000000000000", "page"), ("limit=10000000000000000000", "limit"), ("page=-99999999999", "page")],
)
async def test_list_motors_oversized_paging_is_bad_input(client, query, field):
    """Paging values outside the 32-bit range are rejected rather than clamped."""
    response = await client.get(f"/api/motors?{query}")

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["error"] == "INVALID_INPUT"
    assert detail["message"] == f"Invalid {field} format"


@pytest.mark.asyncio
async def test_list_motors_page_past_end(client):
    await create_motors(client, 2)

    data = (await client.get("/api/motors?page=5")).json()

    assert data["motors"] == []
    assert data["total"] == 2


@pytest.mark.asyncio
async def test_list_motors_filter_by_type(client):
    await create_motors(client, 2, motor_type="matic")
    await create_motors(client, 3, motor_type="sport")

    data = (await client.get("/api/motors?motor_type=sport")).json()

    assert data["total"] == 3
    assert all(m["motor_type"] == "sport" for m in data["motors"])


@pytest.mark.asyncio
async def test_list_motors_filters_combine(client):
    await create_motors(client, 2, motor_type="sport", available=True)
    await create_motors(client, 1, motor_type="sport", available=False)
    await create_motors(client, 2, motor_type="matic", available=True)

    data = (await client.get("/api/motors?motor_type=sport&available_only=true")).json()

    assert data["total"] == 2
    assert all(m["motor_type"] == "sport" and m["available"] for m in data["motors"])


# ============================================================================
# PUT /api/motors/{id}
# ============================================================================

@pytest.mark.asyncio
async def test_update_motor_partial(client, sample_motor):
    """Only supplied fields change."""
    created = (await client.post("/api/motors", json=sample_motor)).json()

    response = await client.put(
        f"/api/motors/{created['motor_id']}",
        json={"price_per_day": 90000, "available": False},
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["price_per_day"] == 90000
    assert updated["available"] is False
    assert updated["motor_name"] == sample_motor["motor_name"]
    assert updated["branch"] == sample_motor["branch"]


@pytest.mark.asyncio
async def test_update_motor_null_fields_ignored(client, sample_motor):
    created = (await client.post("/api/motors", json=sample_motor)).json()

    response = await client.put(
        f"/api/motors/{created['motor_id']}",
        json={"motor_name": "Vario Baru", "description": None},
    )

    assert response.json()["motor_name"] == "Vario Baru"
    assert response.json()["description"] == sample_motor["description"]


@pytest.mark.asyncio
async def test_update_motor_no_fields_leaves_row_unchanged(client, sample_motor):
    created = (await client.post("/api/motors", json=sample_motor)).json()

    response = await client.put(f"/api/motors/{created['motor_id']}", json={})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "NO_FIELDS_TO_UPDATE"
    fetched = (await client.get(f"/api/motors/{created['motor_id']}")).json()
    assert fetched == created


@pytest.mark.asyncio
async def test_update_motor_not_found(client):
    response = await client.put("/api/motors/9999", json={"motor_name": "Ghost"})

    assert response.status_code == 404


# ============================================================================
# DELETE /api/motors/{id}
# ============================================================================

@pytest.mark.asyncio
async def test_delete_motor_twice(client, sample_motor):
    """The second delete of the same id is NotFound."""
    created = (await client.post("/api/motors", json=sample_motor)).json()

    first = await client.delete(f"/api/motors/{created['motor_id']}")
    second = await client.delete(f"/api/motors/{created['motor_id']}")

    assert first.status_code == 200
    assert first.json() == {"message": "Motor deleted successfully"}
    assert second.status_code == 404
    assert (await client.get(f"/api/motors/{created['motor_id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_nonexistent_motor(client):
    response = await client.delete("/api/motors/424242")

    assert response.status_code == 404
