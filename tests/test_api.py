import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from transcoder.main import app

CORS_ORIGIN = "Access-Control-Allow-Origin"


def _decode(data_url: str) -> Image.Image:
    header, payload = data_url.split(",", 1)
    assert header.endswith(";base64")
    return Image.open(io.BytesIO(base64.b64decode(payload)))


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


class TestStaticRoutes:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "POST /api/resize" in resp.text
        assert resp.headers[CORS_ORIGIN] == "*"

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert "T" in body["timestamp"]

    def test_options_any_path(self, client):
        resp = client.options("/anything/at/all")
        assert resp.status_code == 204
        assert resp.content == b""
        assert resp.headers[CORS_ORIGIN] == "*"
        assert resp.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"
        assert resp.headers["Access-Control-Max-Age"] == "86400"

    def test_unknown_route(self, client):
        resp = client.get("/api/unknown")
        assert resp.status_code == 404
        assert resp.headers[CORS_ORIGIN] == "*"

    def test_wrong_method(self, client):
        assert client.get("/api/resize").status_code == 404


class TestResize:
    def test_width_only(self, client, make_image):
        data = make_image(200, 100, "JPEG")
        resp = client.post(
            "/api/resize",
            files={"image": ("photo.jpg", data, "image/jpeg")},
            data={"width": "100"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["originalImage"] == {
            "filename": "photo.jpg",
            "size": len(data),
            "format": "jpeg",
            "width": 200,
            "height": 100,
        }
        processed = body["processedImage"]
        assert (processed["width"], processed["height"]) == (100, 50)
        assert processed["format"] == "jpeg"
        assert processed["filename"] == "resized_photo.jpg"
        assert processed["encodedData"].startswith("data:image/jpeg;base64,")
        assert body["processing"]["operations"] == ["resize"]
        assert body["processing"]["parameters"]["quality"] == 90

    def test_no_dimensions_keeps_size(self, client, make_image):
        data = make_image(120, 80)
        resp = client.post("/api/resize", files={"image": ("a.png", data, "image/png")})
        processed = resp.json()["processedImage"]
        assert (processed["width"], processed["height"]) == (120, 80)

    def test_both_dimensions_default_inside(self, client, make_image):
        data = make_image(200, 100)
        resp = client.post(
            "/api/resize",
            files={"image": ("a.png", data, "image/png")},
            data={"width": "50", "height": "50"},
        )
        processed = resp.json()["processedImage"]
        assert processed["width"] <= 50
        assert processed["height"] <= 50
        assert resp.json()["processing"]["parameters"]["fit"] == "inside"

    def test_explicit_cover(self, client, make_image):
        data = make_image(200, 100)
        resp = client.post(
            "/api/resize",
            files={"image": ("a.png", data, "image/png")},
            data={"width": "50", "height": "50", "fit": "cover"},
        )
        processed = resp.json()["processedImage"]
        assert (processed["width"], processed["height"]) == (50, 50)

    def test_never_enlarges(self, client, make_image):
        data = make_image(100, 50)
        resp = client.post(
            "/api/resize",
            files={"image": ("a.png", data, "image/png")},
            data={"width": "400", "height": "400", "fit": "fill"},
        )
        processed = resp.json()["processedImage"]
        assert (processed["width"], processed["height"]) == (100, 50)

    def test_format_change_renames(self, client, make_image):
        data = make_image(100, 50)
        resp = client.post(
            "/api/resize",
            files={"image": ("pic.png", data, "image/png")},
            data={"width": "50", "format": "WEBP"},
        )
        processed = resp.json()["processedImage"]
        assert processed["filename"] == "resized_pic.webp"
        assert processed["format"] == "webp"
        assert _decode(processed["encodedData"]).format == "WEBP"

    def test_invalid_fields_ignored(self, client, make_image):
        data = make_image(100, 50)
        resp = client.post(
            "/api/resize",
            files={"image": ("pic.png", data, "image/png")},
            data={"width": "abc", "height": "-3", "format": "bmp", "fit": "zoom"},
        )
        assert resp.status_code == 200
        processed = resp.json()["processedImage"]
        assert processed["format"] == "png"
        assert (processed["width"], processed["height"]) == (100, 50)


class TestCompress:
    def test_png_level_clamped(self, client, make_image):
        data = make_image(64, 64)
        resp = client.post(
            "/api/compress",
            files={"image": ("icon.png", data, "image/png")},
            data={"compressionLevel": "12"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["processedImage"]["format"] == "png"
        assert body["processedImage"]["filename"] == "compressed_icon.png"
        assert body["processing"]["operations"] == ["compress"]
        assert body["processing"]["parameters"]["compressionLevel"] == 9

    def test_webp_lossless(self, client, make_image):
        data = make_image(64, 64, "JPEG")
        resp = client.post(
            "/api/compress",
            files={"image": ("photo.jpg", data, "image/jpeg")},
            data={"format": "webp", "quality": "30", "lossless": "true"},
        )
        params = resp.json()["processing"]["parameters"]
        assert params["lossless"] is True
        assert "quality" not in params

    def test_extension_drives_format(self, client, make_image):
        """文件名扩展名优先于实际解码格式"""
        data = make_image(64, 64, "PNG")
        resp = client.post(
            "/api/compress",
            files={"image": ("mislabeled.jpg", data, "image/jpeg")},
            data={"quality": "150"},
        )
        body = resp.json()
        assert body["originalImage"]["format"] == "png"
        assert body["processedImage"]["format"] == "jpeg"
        assert body["processing"]["parameters"]["quality"] == 100

    @pytest.mark.parametrize(
        "mode, source_fmt, filename, target",
        [
            ("CMYK", "JPEG", "print.jpg", "gif"),
            ("F", "TIFF", "depth.tiff", "png"),
        ],
    )
    def test_pixel_mode_converted_for_target(
        self, client, make_image, mode, source_fmt, filename, target
    ):
        """CMYK / 浮点图片转成目标格式支持的像素模式"""
        data = make_image(40, 20, source_fmt, mode=mode)
        resp = client.post(
            "/api/compress",
            files={"image": (filename, data, "application/octet-stream")},
            data={"format": target},
        )
        assert resp.status_code == 200
        processed = resp.json()["processedImage"]
        assert processed["format"] == target
        assert (processed["width"], processed["height"]) == (40, 20)


class TestProcess:
    def test_resize_and_convert(self, client, make_image):
        data = make_image(400, 200)
        resp = client.post(
            "/api/process",
            files={"image": ("big.png", data, "image/png")},
            data={"width": "100", "quality": "70", "format": "jpeg"},
        )
        assert resp.status_code == 200
        body = resp.json()
        processed = body["processedImage"]
        assert processed["filename"] == "processed_big.jpg"
        assert (processed["width"], processed["height"]) == (100, 50)
        assert body["processing"]["operations"] == ["resize", "compress"]
        assert body["processing"]["parameters"]["quality"] == 70


class TestErrors:
    def test_missing_file(self, client):
        resp = client.post("/api/resize", data={"width": "100"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "No image file provided"}
        assert resp.headers[CORS_ORIGIN] == "*"

    def test_file_too_large(self, client):
        data = b"\0" * (6 * 1024 * 1024 + 1)
        resp = client.post("/api/compress", files={"image": ("huge.png", data, "image/png")})
        assert resp.status_code == 413
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("File size too large")

    def test_exact_limit_passes_size_check(self, client):
        data = b"\0" * (6 * 1024 * 1024)
        resp = client.post("/api/compress", files={"image": ("huge.png", data, "image/png")})
        # accepted by the size check, then rejected by the decoder
        assert resp.status_code == 500

    def test_corrupt_image(self, client):
        resp = client.post(
            "/api/process",
            files={"image": ("broken.jpg", b"not really a jpeg", "image/jpeg")},
            data={"width": "10"},
        )
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"]
