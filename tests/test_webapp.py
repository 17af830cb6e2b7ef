from pathlib import Path

import pytest

from murmur.app import App
from murmur.args import parse_main_args
from murmur.webapp import WebAppState, create_web_app

ASSETS = Path(__file__).resolve().parents[1] / "assets" / "dialog"


@pytest.fixture
def client(tmp_path: Path):
    app = App(parse_main_args(["--content", str(ASSETS), "--saves", str(tmp_path)]))
    app.start_initial()
    web_app = create_web_app(app, WebAppState())
    web_app.config["TESTING"] = True
    return web_app.test_client()


def test_shows_current_node(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert "The Whispering Gate" in page
    assert "The gate has been whispering since you arrived." in page
    assert 'value="3"' in page


def test_posting_a_choice_moves_on(client) -> None:
    response = client.post("/", data={"command": "1"})

    page = response.get_data(as_text=True)
    assert "(courage +10)" in page
    assert "Dolls line the windows of the house." in page


def test_errors_are_shown(client) -> None:
    response = client.post("/", data={"command": "/start nowhere"})

    page = response.get_data(as_text=True)
    assert "is not a valid dialog tree ID" in page
    assert "The gate has been whispering since you arrived." in page


def test_continue_button_follows_auto_advance(client) -> None:
    client.post("/", data={"command": "1"})
    page = client.post("/", data={"command": "1"}).get_data(as_text=True)
    assert "Continue</button>" in page
    assert "(Received: journal)" in page

    page = client.post("/", data={"command": ""}).get_data(as_text=True)
    assert "The door opens before you touch it." in page
    assert "(The conversation is closing...)" in page
