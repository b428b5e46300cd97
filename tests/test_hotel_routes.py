"""Endpoint tests for hotel create, read, update and delete."""

from decimal import Decimal

from conftest import hotel_fields, picture_file


def test_create_hotel_returns_201_with_pictures_at_zero_based_positions(client, storage):
    response = client.post(
        "/api/hotels",
        data=hotel_fields(name="Hotel X", price_per_night="100"),
        files=[picture_file("a.png"), picture_file("b.jpg", fmt="JPEG", content_type="image/jpeg")],
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Hotel created successfully"

    hotel = body["hotel"]
    assert hotel["name"] == "Hotel X"
    assert Decimal(str(hotel["price_per_night"])) == Decimal("100")
    assert float(hotel["lat"]) == 48.8566
    assert len(hotel["pictures"]) == 2
    assert [p["position"] for p in hotel["pictures"]] == [0, 1]

    first, second = hotel["pictures"]
    assert first["filepath"].startswith("hotels/") and first["filepath"].endswith(".png")
    assert second["filepath"].endswith(".jpg")
    assert first["filepath"] != second["filepath"]
    for picture in hotel["pictures"]:
        assert picture["hotel_id"] == hotel["id"]
        assert storage.exists(picture["filepath"])
        assert picture["filesize"] == storage.absolute_path(picture["filepath"]).stat().st_size


def test_create_hotel_keeps_submission_order(client):
    files = [picture_file(f"photo{i}.png", color=color) for i, color in enumerate(["red", "green", "blue", "white"])]

    response = client.post("/api/hotels", data=hotel_fields(), files=files)

    assert response.status_code == 201, response.text
    pictures = response.json()["hotel"]["pictures"]
    assert [p["position"] for p in pictures] == [0, 1, 2, 3]
    assert [p["id"] for p in pictures] == sorted(p["id"] for p in pictures)


def test_create_hotel_accepts_plain_pictures_field(client):
    files = [("pictures", ("a.webp", picture_file(fmt="WEBP")[1][1], "image/webp"))]

    response = client.post("/api/hotels", data=hotel_fields(), files=files)

    assert response.status_code == 201, response.text
    assert response.json()["hotel"]["pictures"][0]["filepath"].endswith(".webp")


def test_create_hotel_requires_at_least_one_picture(client):
    response = client.post("/api/hotels", data=hotel_fields())

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "validation_failed"
    assert "pictures" in body["errors"]


def test_create_hotel_rejects_more_than_twenty_pictures(client, storage):
    files = [picture_file(f"photo{i}.png") for i in range(21)]

    response = client.post("/api/hotels", data=hotel_fields(), files=files)

    assert response.status_code == 422
    assert "pictures" in response.json()["errors"]
    assert not list((storage.root / "hotels").glob("*"))


def test_create_hotel_reports_every_invalid_field(client):
    response = client.post(
        "/api/hotels",
        data=hotel_fields(name="X", lat="91", lng="-181", max_capacity="0", price_per_night="-1", description="short"),
        files=[picture_file()],
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    for field in ("name", "lat", "lng", "max_capacity", "price_per_night", "description"):
        assert field in errors, field
        assert errors[field]


def test_create_hotel_requires_all_fields(client):
    fields = hotel_fields()
    del fields["city"]

    response = client.post("/api/hotels", data=fields, files=[picture_file()])

    assert response.status_code == 422
    assert "city" in response.json()["errors"]


def test_create_hotel_treats_empty_address2_as_null(client):
    response = client.post("/api/hotels", data=hotel_fields(address2=""), files=[picture_file()])

    assert response.status_code == 201, response.text
    assert response.json()["hotel"]["address2"] is None


def test_create_with_oversized_picture_leaves_no_state(client, storage):
    oversized = ("pictures[]", ("huge.png", b"\0" * (5 * 1024 * 1024 + 1), "image/png"))

    response = client.post("/api/hotels", data=hotel_fields(), files=[picture_file(), oversized])

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert list(errors) == ["pictures.1"]
    assert client.get("/api/hotels").json()["meta"]["total"] == 0
    assert not (storage.root / "hotels").exists() or not list((storage.root / "hotels").glob("*"))


def test_create_with_disallowed_type_identifies_the_file(client):
    gif = ("pictures[]", ("anim.gif", picture_file(fmt="GIF")[1][1], "image/gif"))

    response = client.post("/api/hotels", data=hotel_fields(), files=[gif, picture_file()])

    assert response.status_code == 422
    assert "pictures.0" in response.json()["errors"]
    assert client.get("/api/hotels").json()["meta"]["total"] == 0


def test_create_with_undecodable_or_tiny_picture_is_rejected(client):
    broken = ("pictures[]", ("broken.png", b"not really a png", "image/png"))
    tiny = picture_file("tiny.png", size=(50, 50))

    response = client.post("/api/hotels", data=hotel_fields(), files=[broken, tiny])

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "not a valid image" in errors["pictures.0"][0]
    assert "50x50" in errors["pictures.1"][0]


def test_get_hotel_returns_pictures_ordered(client, create_hotel):
    hotel = create_hotel(pictures=3)

    response = client.get(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == hotel["id"]
    assert [p["position"] for p in body["pictures"]] == [0, 1, 2]


def test_get_unknown_hotel_returns_404(client):
    response = client.get("/api/hotels/999")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_update_applies_only_present_fields(client, create_hotel):
    hotel = create_hotel()

    response = client.patch(f"/api/hotels/{hotel['id']}", data={"name": "Hotel Y", "max_capacity": "80"})

    assert response.status_code == 200, response.text
    updated = response.json()["hotel"]
    assert updated["name"] == "Hotel Y"
    assert updated["max_capacity"] == 80
    assert updated["city"] == hotel["city"]
    assert updated["address2"] == hotel["address2"]
    assert updated["description"] == hotel["description"]
    assert len(updated["pictures"]) == 2


def test_update_distinguishes_null_from_absent(client, create_hotel):
    hotel = create_hotel()
    assert hotel["address2"] == "Bâtiment B"

    untouched = client.patch(f"/api/hotels/{hotel['id']}", data={"name": "Hotel Z"})
    assert untouched.json()["hotel"]["address2"] == "Bâtiment B"

    cleared = client.patch(f"/api/hotels/{hotel['id']}", data={"address2": ""})
    assert cleared.status_code == 200
    assert cleared.json()["hotel"]["address2"] is None


def test_update_rejects_null_for_required_field(client, create_hotel):
    hotel = create_hotel()

    response = client.patch(f"/api/hotels/{hotel['id']}", data={"city": ""})

    assert response.status_code == 422
    assert "city" in response.json()["errors"]
    assert client.get(f"/api/hotels/{hotel['id']}").json()["city"] == "Paris"


def test_update_validates_ranges(client, create_hotel):
    hotel = create_hotel()

    response = client.patch(f"/api/hotels/{hotel['id']}", data={"lat": "-90.5", "max_capacity": "1001"})

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"lat", "max_capacity"}


def test_update_unknown_hotel_returns_404(client):
    response = client.patch("/api/hotels/999", data={"name": "Nowhere Inn"})

    assert response.status_code == 404


def test_delete_hotel_removes_pictures_and_files(client, create_hotel, storage):
    hotel = create_hotel(pictures=2)
    paths = [p["filepath"] for p in hotel["pictures"]]

    response = client.delete(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Hotel deleted successfully", "hotel_id": hotel["id"]}
    assert client.get(f"/api/hotels/{hotel['id']}").status_code == 404
    for path in paths:
        assert not storage.exists(path)


def test_delete_twice_returns_404(client, create_hotel):
    hotel = create_hotel()

    assert client.delete(f"/api/hotels/{hotel['id']}").status_code == 200
    second = client.delete(f"/api/hotels/{hotel['id']}")

    assert second.status_code == 404
    assert second.json()["error"] == "not_found"


def test_delete_tolerates_missing_files(client, create_hotel, storage):
    hotel = create_hotel(pictures=2)
    storage.delete(hotel["pictures"][0]["filepath"])

    response = client.delete(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 200
    assert not storage.exists(hotel["pictures"][1]["filepath"])


def test_delete_leaves_other_hotels_untouched(client, create_hotel, storage):
    kept = create_hotel(name="Hotel Kept")
    gone = create_hotel(name="Hotel Gone")

    client.delete(f"/api/hotels/{gone['id']}")

    body = client.get(f"/api/hotels/{kept['id']}").json()
    assert len(body["pictures"]) == 2
    assert all(storage.exists(p["filepath"]) for p in body["pictures"])


def test_delete_reports_storage_failure_as_internal_error(client, create_hotel, storage):
    from hotels_api.exceptions import StorageError

    hotel = create_hotel()

    def failing_delete(path):
        raise StorageError("disk unreachable")

    storage.delete = failing_delete

    response = client.delete(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 500
    assert response.json()["error"] == "storage_failure"


def test_field_and_file_errors_are_reported_together(client):
    bad_file = ("pictures[]", ("doc.pdf", b"%PDF-1.4", "application/pdf"))

    response = client.post("/api/hotels", data=hotel_fields(zipcode="7"), files=[bad_file])

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"zipcode", "pictures.0"}


def test_create_removes_written_files_when_a_later_write_fails(client, storage):
    from hotels_api.exceptions import StorageError

    real_save = storage.save
    calls = []

    def save_then_fail(data, extension):
        calls.append(extension)
        if len(calls) == 2:
            raise StorageError("disk full")
        return real_save(data, extension)

    storage.save = save_then_fail

    response = client.post(
        "/api/hotels",
        data=hotel_fields(),
        files=[picture_file(f"photo{i}.png") for i in range(3)],
    )

    assert response.status_code == 500
    assert response.json()["error"] == "storage_failure"
    assert len(calls) == 2
    assert client.get("/api/hotels").json()["meta"]["total"] == 0
    assert not list((storage.root / "hotels").glob("*"))


def test_delete_failing_on_second_file_keeps_rows_and_files_consistent(client, create_hotel, storage):
    from hotels_api.exceptions import StorageError

    hotel = create_hotel(pictures=2)
    first, second = hotel["pictures"]
    real_delete = storage.delete

    def fail_on_second(path):
        if path == second["filepath"]:
            raise StorageError("permission denied")
        return real_delete(path)

    storage.delete = fail_on_second

    response = client.delete(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 500
    assert response.json()["error"] == "storage_failure"
    remaining = client.get(f"/api/hotels/{hotel['id']}").json()["pictures"]
    assert [p["id"] for p in remaining] == [second["id"]]
    assert not storage.exists(first["filepath"])
    assert storage.exists(second["filepath"])

    storage.delete = real_delete

    assert client.delete(f"/api/hotels/{hotel['id']}").status_code == 200
    assert not list((storage.root / "hotels").glob("*"))


def test_delete_passes_http_errors_through(client, create_hotel, monkeypatch):
    from fastapi import HTTPException

    from hotels_api.services import hotel_service

    hotel = create_hotel()

    async def conflicting_delete(db, storage, hotel_id):
        raise HTTPException(status_code=409, detail={"error": "conflict", "message": "Hotel is locked"})

    monkeypatch.setattr(hotel_service, "delete_hotel", conflicting_delete)

    response = client.delete(f"/api/hotels/{hotel['id']}")

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
