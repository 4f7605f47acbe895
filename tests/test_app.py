import io

from generation import NoImageProducedError, TransportError
from prompts import IMAGE_TYPES, MISSING_INPUT_MESSAGE, NO_IMAGE_MESSAGE, STYLE_OPTIONS


def upload(client, data, filename="face.png", content_type="image/png"):
    return client.post(
        "/api/image",
        data={"image": (io.BytesIO(data), filename, content_type)},
        content_type="multipart/form-data",
    )


def generate(client, **body):
    body.setdefault("image_type", "caricature")
    body.setdefault("style", "3D cartoon")
    return client.post("/api/generate", json=body)


def test_index_serves_form(client):
    res = client.get("/")
    assert res.status_code == 200
    assert b"AKKOR KARIKATUR" in res.data
    assert b'id="submitBtn"' in res.data


def test_options_list_categories_and_styles(client):
    data = client.get("/api/options").get_json()
    assert data["image_types"] == IMAGE_TYPES
    assert data["styles"] == STYLE_OPTIONS
    assert len(data["styles"]) == 10


def test_upload_then_preview(client, png):
    res = upload(client, png)
    assert res.status_code == 200
    state = res.get_json()
    assert state["has_image"] is True
    assert state["can_submit"] is True

    preview = client.get(state["preview_url"])
    assert preview.status_code == 200
    assert preview.data == png
    assert preview.mimetype == "image/png"


def test_replaced_upload_releases_old_preview(client, png, jpeg):
    old_url = upload(client, png).get_json()["preview_url"]
    new_url = upload(client, jpeg, "face.jpg", "image/jpeg").get_json()["preview_url"]

    assert client.get(old_url).status_code == 404
    assert client.get(new_url).status_code == 200


def test_upload_without_file(client):
    res = client.post("/api/image", data={}, content_type="multipart/form-data")
    assert res.status_code == 400
    assert res.get_json()["error"] == "No image provided"


def test_unreadable_upload_is_reported(client):
    res = upload(client, b"plain text", "notes.txt", "text/plain")
    assert res.status_code == 422
    body = res.get_json()
    assert body["error"].startswith("Error: ")
    assert body["has_image"] is False


def test_generate_without_photo(client, generator):
    res = generate(client)
    assert res.status_code == 400
    assert res.get_json()["error"] == MISSING_INPUT_MESSAGE
    assert generator.calls == []


def test_generate_without_style(client, generator, png):
    upload(client, png)
    res = generate(client, style="")
    assert res.status_code == 400
    assert res.get_json()["error"] == MISSING_INPUT_MESSAGE
    assert generator.calls == []


def test_generate_rejects_unknown_options(client, png):
    upload(client, png)
    assert generate(client, style="vaporwave").status_code == 400
    assert generate(client, image_type="sculpture").status_code == 400


def test_generate_success_and_download(client, generator, generated, png):
    upload(client, png)

    res = generate(client, style="anime", instructions="  add a hat  ")
    assert res.status_code == 200
    state = res.get_json()
    assert state["mode"] == "success"
    assert state["result"] == generated.data_url
    assert state["is_loading"] is False
    (request, _), = generator.calls
    assert request.style == "anime"
    assert request.instructions == "add a hat"

    download = client.get("/api/download")
    assert download.status_code == 200
    assert download.data == generated.data
    disposition = download.headers["Content-Disposition"]
    assert disposition.startswith("attachment")
    assert "akkor-karikatur-" in disposition
    assert ".jpg" in disposition


def test_generate_no_image_produced(client, generator, png):
    generator.error = NoImageProducedError()
    upload(client, png)

    res = generate(client)

    assert res.status_code == 502
    body = res.get_json()
    assert body["error"] == "Error: " + NO_IMAGE_MESSAGE
    assert body["error_kind"] == "no-image-produced"
    assert body["result"] is None
    assert body["can_submit"] is True


def test_generate_transport_error(client, generator, png):
    generator.error = TransportError("503 UNAVAILABLE")
    upload(client, png)

    res = generate(client)

    assert res.status_code == 502
    body = res.get_json()
    assert body["error"] == "Error: 503 UNAVAILABLE"
    assert body["is_loading"] is False


def test_generate_while_busy(client, state, generator, png):
    upload(client, png)
    state.is_loading = True

    res = generate(client)

    assert res.status_code == 409
    assert generator.calls == []


def test_change_style_keeps_photo(client, png):
    upload(client, png)
    generate(client)

    state = client.post("/api/change-style").get_json()

    assert state["mode"] == "idle"
    assert state["result"] is None
    assert state["status_message"] == ""
    assert state["has_image"] is True


def test_download_without_result(client):
    res = client.get("/api/download")
    assert res.status_code == 404


def test_reset(client, png):
    preview_url = upload(client, png).get_json()["preview_url"]

    state = client.post("/api/reset").get_json()

    assert state["has_image"] is False
    assert client.get(preview_url).status_code == 404


def test_good_upload_after_unreadable_one_clears_error(client, png):
    assert upload(client, b"plain text", "notes.txt", "text/plain").status_code == 422

    state = upload(client, png).get_json()

    assert state["status_message"] == ""
    assert state["is_error"] is False
    assert state["mode"] == "idle"


def test_generate_rejects_non_object_body(client, generator, png):
    upload(client, png)
    res = client.post("/api/generate", json=[1])
    assert res.status_code == 400
    assert res.get_json()["error"] == "Request body must be a JSON object"
    assert generator.calls == []


def test_generate_rejects_non_text_instructions(client, generator, png):
    upload(client, png)
    res = generate(client, instructions=5)
    assert res.status_code == 400
    assert res.get_json()["error"] == "Instructions must be text"
    assert generator.calls == []


def test_generate_again_needs_change_style(client, generator, png):
    upload(client, png)
    assert generate(client).status_code == 200

    res = generate(client)
    assert res.status_code == 409
    assert res.get_json()["mode"] == "success"
    assert len(generator.calls) == 1

    client.post("/api/change-style")
    assert generate(client).status_code == 200
    assert len(generator.calls) == 2
