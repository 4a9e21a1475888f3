"""
Integration tests for training programs and their ratings.
"""

PROGRAM = {
    "name": "Summer Shred",
    "description": "Eight weeks of conditioning",
    "type": "mixed",
    "content": {"weeks": 8, "daysPerWeek": 4, "level": "intermediate"},
}


async def create_program(client, **overrides):
    response = await client.post("/api/programs", json={**PROGRAM, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestPrograms:
    """Tests for creating and reading programs"""

    async def test_create_program(self, async_client, register_user):
        alice = await register_user("alice")

        program = await create_program(async_client)

        assert program["name"] == "Summer Shred"
        assert program["author"] == "alice"
        assert program["creatorId"] == alice["id"]
        assert program["rating"] == 0
        assert program["ratingCount"] == 0
        assert program["isPublic"] is True
        assert program["content"]["daysPerWeek"] == 4

    async def test_unknown_type_is_rejected(self, async_client, register_user):
        await register_user("alice")

        response = await async_client.post("/api/programs", json={**PROGRAM, "type": "yoga"})

        assert response.status_code == 400

    async def test_get_program(self, async_client, register_user):
        await register_user("alice")
        program = await create_program(async_client)

        response = await async_client.get(f"/api/programs/{program['id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "Summer Shred"

    async def test_unknown_program(self, async_client, register_user):
        await register_user("alice")

        response = await async_client.get("/api/programs/9999")

        assert response.status_code == 404
        assert response.json() == {"message": "Program not found"}

    async def test_private_programs_are_visible_only_to_their_creator(self, async_client, register_user, login_as):
        await register_user("alice")
        private = await create_program(async_client, name="Secret Plan", isPublic=False)
        public = await create_program(async_client, name="Open Plan")

        await register_user("bob")
        bob_view = {p["id"] for p in (await async_client.get("/api/programs")).json()}
        assert public["id"] in bob_view
        assert private["id"] not in bob_view
        assert (await async_client.get(f"/api/programs/{private['id']}")).status_code == 404

        await login_as("alice")
        alice_view = {p["id"] for p in (await async_client.get("/api/programs")).json()}
        assert private["id"] in alice_view


class TestRatings:
    """Tests for POST /api/programs/{id}/ratings"""

    async def test_rating_again_replaces_the_earlier_rating(self, async_client, register_user):
        await register_user("alice")
        program = await create_program(async_client)
        url = f"/api/programs/{program['id']}/ratings"

        first = await async_client.post(url, json={"rating": 5, "comment": "Loved it"})
        assert first.status_code == 201
        assert first.json()["rating"] == 5
        assert first.json()["comment"] == "Loved it"

        await async_client.post(url, json={"rating": 3})

        detail = (await async_client.get(f"/api/programs/{program['id']}")).json()
        assert detail["rating"] == 3
        assert detail["ratingCount"] == 1

    async def test_average_is_rounded_to_one_decimal(self, async_client, register_user):
        await register_user("alice")
        program = await create_program(async_client)
        url = f"/api/programs/{program['id']}/ratings"
        await async_client.post(url, json={"rating": 5})
        await register_user("bob")
        await async_client.post(url, json={"rating": 4})
        await register_user("carol")
        await async_client.post(url, json={"rating": 4})

        detail = (await async_client.get(f"/api/programs/{program['id']}")).json()

        assert detail["rating"] == 4.3
        assert detail["ratingCount"] == 3

    async def test_rating_out_of_range(self, async_client, register_user):
        await register_user("alice")
        program = await create_program(async_client)

        response = await async_client.post(f"/api/programs/{program['id']}/ratings", json={"rating": 6})

        assert response.status_code == 400

    async def test_rating_unknown_program(self, async_client, register_user):
        await register_user("alice")

        response = await async_client.post("/api/programs/9999/ratings", json={"rating": 4})

        assert response.status_code == 404


async def test_trending_orders_by_rating(async_client, register_user):
    await register_user("alice")
    good = await create_program(async_client, name="Good")
    better = await create_program(async_client, name="Better")
    await async_client.post(f"/api/programs/{good['id']}/ratings", json={"rating": 4})
    await async_client.post(f"/api/programs/{better['id']}/ratings", json={"rating": 5})

    trending = (await async_client.get("/api/programs/trending")).json()

    assert len(trending) <= 3
    assert [p["name"] for p in trending[:2]] == ["Better", "Good"]
