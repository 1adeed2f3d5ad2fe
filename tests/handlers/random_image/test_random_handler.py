import pytest

from handlers.random_image.handler import handler
from handlers.random_image.models import RandomImageRequest

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/124.0 Safari/537.36"


def random_event(params: dict | None = None, **headers: str) -> dict:
    return {
        "httpMethod": "GET",
        "path": "/api/random",
        "queryStringParameters": params,
        "headers": {key.replace("_", "-"): value for key, value in headers.items()},
    }


@pytest.fixture
def catalog(container, image_factory):
    container.metadata.save_image(image_factory("land_cat", tags=["cat"]))
    container.metadata.save_image(image_factory("land_dog", tags=["dog", "cat"]))
    container.metadata.save_image(image_factory("port_cat", tags=["cat"], orientation="portrait"))
    return container


class TestRandomImageRequest:
    def test_parses_lists(self) -> None:
        request = RandomImageRequest(tags="cat, dog", exclude="bird")

        assert request.tags == ["cat", "dog"]
        assert request.exclude == ["bird"]

    def test_unknown_values_are_ignored(self) -> None:
        request = RandomImageRequest(orientation="square", format="png")

        assert request.orientation is None
        assert request.format is None


class TestRandomHandler:
    def test_desktop_gets_landscape(self, catalog, lambda_context) -> None:
        response = handler(random_event({"exclude": "dog"}, User_Agent=DESKTOP_UA), lambda_context)

        assert response["statusCode"] == 302
        assert response["headers"]["Location"] == "https://images.example.com/original/landscape/land_cat.jpg"
        assert response["headers"]["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert response["body"] == ""

    def test_mobile_gets_portrait(self, catalog, lambda_context) -> None:
        response = handler(random_event(None, User_Agent=IPHONE_UA), lambda_context)

        assert response["headers"]["Location"] == "https://images.example.com/original/portrait/port_cat.jpg"

    def test_explicit_orientation_wins(self, catalog, lambda_context) -> None:
        response = handler(
            random_event({"orientation": "landscape", "tags": "dog"}, User_Agent=IPHONE_UA),
            lambda_context,
        )

        assert response["headers"]["Location"].endswith("/original/landscape/land_dog.jpg")

    def test_accept_header_picks_variant(self, catalog, lambda_context) -> None:
        response = handler(
            random_event({"tags": "dog"}, Accept="image/avif,image/webp,*/*"),
            lambda_context,
        )

        assert response["headers"]["Location"] == "https://images.example.com/avif/landscape/land_dog.avif"

    def test_format_parameter_wins_over_accept(self, catalog, lambda_context) -> None:
        response = handler(
            random_event({"tags": "dog", "format": "webp"}, Accept="image/avif"),
            lambda_context,
        )

        assert response["headers"]["Location"] == "https://images.example.com/webp/landscape/land_dog.webp"

    def test_all_required_tags_must_match(self, catalog, lambda_context) -> None:
        for _ in range(5):
            response = handler(random_event({"tags": "cat,dog"}), lambda_context)
            assert response["headers"]["Location"].endswith("land_dog.jpg")

    def test_no_match(self, catalog, lambda_context, body_of) -> None:
        response = handler(random_event({"tags": "unicorn"}), lambda_context)

        assert response["statusCode"] == 404
        assert body_of(response)["message"] == "No images found matching criteria"
