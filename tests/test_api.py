"""Tests for API functionality."""

import pytest
from fastapi.testclient import TestClient

from clickmark.api.app import create_app, generate_token
from clickmark.runtime import build_runtime


@pytest.fixture
def runtime(tmp_path):
    """Create a runtime with default config."""
    return build_runtime(config_path=tmp_path / "clickmark.toml")


@pytest.fixture
def client(runtime):
    app = create_app(runtime, token=None)
    return TestClient(app)


def test_health_endpoint(client):
    """Test /health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"]


def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    app = create_app(runtime, token=token)
    client = TestClient(app)

    # Without token should get 401
    response = client.get("/health")
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

    # With token should work
    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_put_and_get_document(client):
    """Test loading a document and reading it back."""
    response = client.put("/document", json={"content": "# T\n\nbody"})
    assert response.status_code == 200
    data = response.json()
    assert data["markdown"] == "# T\n\nbody"
    assert "<h1>T</h1>" in data["html"]
    assert data["blocks"] == 3
    assert data["words"] == 2
    assert data["can_undo"] is False

    assert client.get("/document").json()["markdown"] == "# T\n\nbody"


def test_put_document_html(client):
    """Test HTML content is converted on load."""
    response = client.put("/document", json={"content": "<p><em>x</em></p>"})
    assert response.json()["markdown"] == "*x*"


def test_blocks(client):
    """Test /blocks lists text lines and code blocks."""
    client.put("/document", json={"content": "# T\n```py\nx\n```"})
    blocks = client.get("/blocks").json()
    assert blocks[0]["type"] == "text"
    assert blocks[0]["kind"] == "h1"
    assert blocks[1] == {"type": "code", "language": "py", "code": "x"}


def test_edit_block_and_undo(client):
    """Test editing one block, then undo and redo."""
    client.put("/document", json={"content": "# T\n\nbody"})

    response = client.put("/blocks/2", json={"text": "changed"})
    assert response.status_code == 200
    assert response.json()["raw"] == "changed"

    data = client.get("/document").json()
    assert data["markdown"] == "# T\n\nchanged"
    assert data["can_undo"] is True

    data = client.post("/undo").json()
    assert data["markdown"] == "# T\n\nbody"
    assert data["can_redo"] is True

    data = client.post("/redo").json()
    assert data["markdown"] == "# T\n\nchanged"


def test_edit_code_block(client):
    """Test editing a code block's text."""
    client.put("/document", json={"content": "# T\n```py\nx\n```"})
    response = client.put("/blocks/1", json={"text": "y = 2"})
    assert response.json()["code"] == "y = 2"
    assert client.get("/document").json()["markdown"] == "# T\n```py\ny = 2\n```"


def test_edit_block_not_found(client):
    """Test an out-of-range block index."""
    response = client.put("/blocks/99", json={"text": "x"})
    assert response.status_code == 404


def test_clear(client):
    """Test /clear empties the document."""
    client.put("/document", json={"content": "a\nb"})
    data = client.post("/clear").json()
    assert data["markdown"] == ""
    assert data["blocks"] == 1


def test_convert(client):
    """Test /convert leaves the document alone."""
    client.put("/document", json={"content": "keep"})
    response = client.post("/convert", json={"html": "<b>x</b>"})
    assert response.json() == {"markdown": "**x**"}
    assert client.get("/document").json()["markdown"] == "keep"


def test_document_placeholder(client):
    """Test the placeholder is reported only while the document is empty."""
    data = client.get("/document").json()
    assert data["placeholder"] == "Start writing… type / for commands"

    data = client.put("/document", json={"content": "text"}).json()
    assert data["placeholder"] is None


def test_configured_placeholder(tmp_path):
    """Test the configured placeholder reaches new sessions."""
    config_path = tmp_path / "clickmark.toml"
    config_path.write_text('[editor]\nplaceholder = "Write here"\n', encoding="utf-8")
    runtime = build_runtime(config_path=config_path)

    session = runtime.new_session()
    try:
        assert session.placeholder_text() == "Write here"
    finally:
        session.destroy()
