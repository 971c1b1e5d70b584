import re

from fastapi import status
from fastapi.testclient import TestClient

from file_gateway.config.settings import Settings
from file_gateway.main import create_app

from tests.consts import (
    MAX_UPLOAD_BYTES,
    TEST_BASE_URL,
    TEST_IMAGE_CONTENT,
    TEST_IMAGE_CONTENT_TYPE,
    TEST_IMAGE_NAME,
    TEST_UPLOAD_DIR,
    TEST_USER_ID,
)

UPLOADED_URL = re.compile(
    rf"^{re.escape(TEST_BASE_URL)}/{TEST_UPLOAD_DIR}/{TEST_USER_ID}/(?P<filename>[A-Za-z0-9_-]{{10}}_cat\.png)$"
)


def test__upload_image__happy_path(upload_image, user_dir):
    response = upload_image()

    assert response.status_code == status.HTTP_200_OK
    match = UPLOADED_URL.match(response.json()["url"])
    assert match is not None

    # the file lands at the path the URL implies, byte for byte
    stored = user_dir / match["filename"]
    assert stored.read_bytes() == TEST_IMAGE_CONTENT


def test__upload_image__at_size_limit(upload_image, user_dir):
    content = b"\x00" * MAX_UPLOAD_BYTES
    response = upload_image(content=content)

    assert response.status_code == status.HTTP_200_OK
    filename = response.json()["url"].rsplit("/", 1)[-1]
    assert (user_dir / filename).stat().st_size == MAX_UPLOAD_BYTES


def test__upload_same_name_twice__both_files_kept(upload_image, user_dir):
    first = upload_image(content=b"first")
    second = upload_image(content=b"second")

    first_name = first.json()["url"].rsplit("/", 1)[-1]
    second_name = second.json()["url"].rsplit("/", 1)[-1]
    assert first_name != second_name
    assert first_name.endswith(f"_{TEST_IMAGE_NAME}")
    assert second_name.endswith(f"_{TEST_IMAGE_NAME}")
    assert (user_dir / first_name).read_bytes() == b"first"
    assert (user_dir / second_name).read_bytes() == b"second"


def test__upload_image__client_path_is_stripped(upload_image, user_dir, workdir):
    response = upload_image(name="../../escape.png")

    assert response.status_code == status.HTTP_200_OK
    filename = response.json()["url"].rsplit("/", 1)[-1]
    assert filename.endswith("_escape.png")
    assert (user_dir / filename).is_file()
    assert not (workdir.parent / "escape.png").exists()


def test_list_images(client: TestClient, upload_image, delete_image):
    urls = [upload_image(name=f"image{i}.png", content=f"image {i}".encode()).json()["url"] for i in range(5)]
    for url in urls[:2]:
        assert delete_image(url).status_code == status.HTTP_200_OK

    response = client.get("/images")

    assert response.status_code == status.HTTP_200_OK
    assert sorted(response.json()["images"]) == sorted(urls[2:])


def test_list_images__skips_directories(client: TestClient, upload_image, user_dir):
    url = upload_image().json()["url"]
    (user_dir / "nested").mkdir()

    response = client.get("/images")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"images": [url]}


def test_get_image_from_static_route(client: TestClient, upload_image):
    url = upload_image().json()["url"]

    response = client.get(url)

    assert response.status_code == status.HTTP_200_OK
    assert response.content == TEST_IMAGE_CONTENT
    assert response.headers["content-type"] == TEST_IMAGE_CONTENT_TYPE


def test_get_image_from_static_route__upload_dir_with_space(workdir):
    client = TestClient(create_app(Settings(upload_dir="my uploads", base_url=TEST_BASE_URL)))
    url = client.post("/upload", files={"image": (TEST_IMAGE_NAME, TEST_IMAGE_CONTENT, TEST_IMAGE_CONTENT_TYPE)}).json()["url"]

    assert url.startswith(f"{TEST_BASE_URL}/my%20uploads/{TEST_USER_ID}/")
    response = client.get(url)
    assert response.status_code == status.HTTP_200_OK
    assert response.content == TEST_IMAGE_CONTENT


def test_delete_image(client: TestClient, upload_image, delete_image, user_dir):
    url = upload_image().json()["url"]
    filename = url.rsplit("/", 1)[-1]

    response = delete_image(url)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "File deleted successfully"}
    assert not (user_dir / filename).exists()

    # the file should not be served once it was deleted
    response = client.get(url)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_image__form_encoded(client: TestClient, upload_image, user_dir):
    url = upload_image().json()["url"]
    filename = url.rsplit("/", 1)[-1]

    response = client.request("DELETE", "/delete", data={"imageUrl": url})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "File deleted successfully"}
    assert not (user_dir / filename).exists()


def test_delete_image__symlink_removes_link_only(client: TestClient, upload_image, delete_image, user_dir):
    url = upload_image().json()["url"]
    target = user_dir / url.rsplit("/", 1)[-1]
    alias = user_dir / "alias.png"
    alias.symlink_to(target)

    response = delete_image(url.rsplit("/", 1)[0] + "/alias.png")

    assert response.status_code == status.HTTP_200_OK
    assert not alias.is_symlink()
    assert target.read_bytes() == TEST_IMAGE_CONTENT
    assert client.get(url).status_code == status.HTTP_200_OK


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "status": "ok",
        "components": {"api": "ready", "storage": "ready"},
        "ready": True,
    }
